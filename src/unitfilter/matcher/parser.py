"""Expression parser for unit filters.

Compiles filter expressions into UnitFilter trees. Examples:
- type = LIGHT
- type = LIGHT AND location = "living-room"
- type = LIGHT OR type = SWITCH
- NOT type = LOCATION
- type != LOCATION
- {type = LOCATION, root = true}
- type = LIGHT AND (location = kitchen OR location = hallway)
- *  (matches every unit)

Supported fields:
- type (alias unit_type): unit type
- location (aliases location_id, placement): placement location ID
- root: location root flag
- location_type: location kind (ZONE, TILE, REGION)

Precedence is NOT > AND > OR. Braces group several constraints into a
single property test, so NOT applies to the group as a whole. A
parenthesized expression may only appear as the last operand of an AND
chain.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from pyparsing import (
    CaselessKeyword,
    Forward,
    Group,
    Literal,
    Optional,
    ParserElement,
    QuotedString,
    Suppress,
    Word,
    ZeroOrMore,
    alphanums,
    alphas,
    one_of,
)

from unitfilter.matcher.filter import FilterProperties, UnitFilter
from unitfilter.units.models import LocationType, UnitType

# Enable packrat parsing for performance
ParserElement.enablePackrat()


class FilterParseError(ValueError):
    """Raised when a filter expression cannot be parsed."""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"Failed to parse expression: {expression!r}: {reason}")


# Field names accepted in expressions, mapped to their canonical name
FIELD_ALIASES = {
    "type": "type",
    "unit_type": "type",
    "location": "location",
    "location_id": "location",
    "placement": "location",
    "root": "root",
    "location_type": "location_type",
}

# Canonical field name -> path into FilterProperties
FIELD_PATHS: dict[str, tuple[str, ...]] = {
    "type": ("unit_type",),
    "location": ("placement_config", "location_id"),
    "root": ("location_config", "root"),
    "location_type": ("location_config", "location_type"),
}

_TRUE_VALUES = {"true", "yes", "on", "1"}
_FALSE_VALUES = {"false", "no", "off", "0"}
_KEYWORDS = {"AND", "OR", "NOT"}
_BARE_VALUE = re.compile(r"^[A-Za-z0-9_\-.:/]+$")


@dataclass
class _Constraint:
    """A single parsed ``field op value`` condition."""

    name: str
    value: Any
    negated: bool = False


@dataclass
class _Clause:
    """A property test: merged constraints plus the negate flag."""

    properties: dict[str, Any] = field(default_factory=dict)
    negate: bool = False


@dataclass
class _Group:
    """A parenthesized sub-expression."""

    node: UnitFilter


def _convert_value(field_name: str, raw: str) -> Any:
    """Convert a raw token to the type of the constrained field."""
    if field_name == "type":
        return UnitType(raw.upper())
    if field_name == "location_type":
        return LocationType(raw.upper())
    if field_name == "root":
        lowered = raw.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"Invalid boolean for root: {raw!r}")
    return raw


def _set_path(target: dict[str, Any], path: tuple[str, ...], value: Any) -> None:
    for key in path[:-1]:
        target = target.setdefault(key, {})
    target[path[-1]] = value


class FilterParser:
    """Parser for unit filter expressions."""

    def __init__(self):
        """Initialize the parser grammar."""
        self._parser = self._build_parser()

    def _build_parser(self) -> ParserElement:
        """Build the pyparsing grammar."""
        # Field names (alphanumeric with underscores)
        field_name = Word(alphas, alphanums + "_").setResultsName("field")

        # Values: quoted strings or bare words (IDs, enum names, booleans)
        value = (
            QuotedString('"') | QuotedString("'") | Word(alphanums + "_-.:/")
        ).setResultsName("value")

        comp_op = one_of("= !=").setResultsName("operator")

        # Condition: field op value
        condition = Group(field_name + comp_op + value).setParseAction(self._make_condition)

        # Braced group of conditions forming one property test
        property_set = (
            Suppress("{") + condition + ZeroOrMore(Suppress(",") + condition) + Suppress("}")
        ).setParseAction(self._make_property_set)

        wildcard = Literal("*").setParseAction(lambda: _Clause())

        and_op = CaselessKeyword("AND")
        or_op = CaselessKeyword("OR")
        not_op = CaselessKeyword("NOT")

        clause = (Optional(not_op) + (property_set | condition | wildcard)).setParseAction(
            self._make_clause
        )

        expr = Forward()
        group = (Suppress("(") + expr + Suppress(")")).setParseAction(self._make_group)
        operand = group | clause

        and_chain = (operand + ZeroOrMore(Suppress(and_op) + operand)).setParseAction(
            self._make_and
        )
        expr <<= (and_chain + ZeroOrMore(Suppress(or_op) + and_chain)).setParseAction(
            self._make_or
        )

        return expr

    def _make_condition(self, tokens) -> _Constraint:
        """Convert parsed tokens to a constraint."""
        t = tokens[0]
        canonical = FIELD_ALIASES.get(t.field.lower())
        if canonical is None:
            raise ValueError(f"Unknown field: {t.field}")
        return _Constraint(
            name=canonical,
            value=_convert_value(canonical, t.value),
            negated=t.operator == "!=",
        )

    def _make_property_set(self, tokens) -> _Clause:
        """Merge braced constraints into a single property test."""
        properties: dict[str, Any] = {}
        seen: set[str] = set()
        for constraint in tokens:
            if constraint.negated:
                raise ValueError("'!=' is not allowed inside braces; use NOT {...}")
            if constraint.name in seen:
                raise ValueError(f"Duplicate field in braces: {constraint.name}")
            seen.add(constraint.name)
            _set_path(properties, FIELD_PATHS[constraint.name], constraint.value)
        return _Clause(properties=properties)

    def _make_clause(self, tokens) -> _Clause:
        """Apply an optional NOT to a property test."""
        inner = tokens[-1]
        if isinstance(inner, _Constraint):
            properties: dict[str, Any] = {}
            _set_path(properties, FIELD_PATHS[inner.name], inner.value)
            inner = _Clause(properties=properties, negate=inner.negated)
        if len(tokens) == 2:
            return _Clause(properties=inner.properties, negate=not inner.negate)
        return inner

    def _make_group(self, tokens) -> _Group:
        """Mark a parenthesized expression."""
        return _Group(node=tokens[0])

    def _make_and(self, tokens) -> UnitFilter:
        """Chain operands through their AND children."""
        *heads, tail = list(tokens)
        for head in heads:
            if isinstance(head, _Group):
                raise ValueError("A parenthesized group must be the last operand of an AND chain")

        node = tail.node if isinstance(tail, _Group) else _clause_to_filter(tail)
        for head in reversed(heads):
            node = _clause_to_filter(head, and_=node)
        return node

    def _make_or(self, tokens) -> UnitFilter:
        """Attach each alternative at the end of the previous OR chain."""
        chains = list(tokens)
        node = chains[-1]
        for chain in reversed(chains[:-1]):
            node = _append_or(chain, node)
        return node

    def parse(self, expression: str) -> UnitFilter:
        """Parse an expression string.

        Args:
            expression: The expression to parse.

        Returns:
            Root node of the filter tree.

        Raises:
            FilterParseError: If the expression is invalid.
        """
        try:
            result = self._parser.parseString(expression, parseAll=True)
            return result[0]
        except Exception as e:
            raise FilterParseError(expression, str(e)) from e


def _clause_to_filter(clause: _Clause, and_: UnitFilter | None = None) -> UnitFilter:
    """Build a filter node, passing only the fields that were given."""
    kwargs: dict[str, Any] = {}
    if clause.properties:
        kwargs["properties"] = FilterProperties.model_validate(clause.properties)
    if clause.negate:
        kwargs["negate"] = True
    if and_ is not None:
        kwargs["and_"] = and_
    return UnitFilter(**kwargs)


def _append_or(node: UnitFilter, alternative: UnitFilter) -> UnitFilter:
    """Return a copy of ``node`` with ``alternative`` at the end of its OR chain."""
    chain = []
    while node is not None:
        chain.append(node)
        node = node.or_
    for link in reversed(chain):
        alternative = link.model_copy(update={"or_": alternative})
    return alternative


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (UnitType, LocationType)):
        return value.value
    text = str(value)
    if _BARE_VALUE.match(text) and text.upper() not in _KEYWORDS:
        return text
    if '"' in text:
        return f"'{text}'"
    return f'"{text}"'


def _format_clause(node: UnitFilter) -> str:
    properties = node.properties
    placement = properties.placement_config
    location = properties.location_config

    conditions = []
    if "unit_type" in properties.model_fields_set:
        conditions.append(f"type = {_format_value(properties.unit_type)}")
    if "location_id" in placement.model_fields_set:
        conditions.append(f"location = {_format_value(placement.location_id)}")
    if "root" in location.model_fields_set:
        conditions.append(f"root = {_format_value(location.root)}")
    if "location_type" in location.model_fields_set:
        conditions.append(f"location_type = {_format_value(location.location_type)}")

    if not conditions:
        # A negated empty clause never matches on its own
        return "NOT *" if node.negate else "*"
    if len(conditions) == 1:
        text = conditions[0]
    else:
        text = "{" + ", ".join(conditions) + "}"
    return f"NOT {text}" if node.negate else text


def format_filter(node: UnitFilter) -> str:
    """Render a filter tree as an expression string.

    Properties that the expression language has no field for are dropped.

    Args:
        node: Root node of the filter tree.

    Returns:
        Expression that parses back into an equivalent tree.
    """
    alternatives = []
    while node is not None:
        operands = [_format_clause(node)]
        child = node.and_
        while child is not None:
            if child.or_ is not None:
                # An AND child with its own OR chain is always the last operand
                operands.append(f"({format_filter(child)})")
                break
            operands.append(_format_clause(child))
            child = child.and_
        alternatives.append(" AND ".join(operands))
        node = node.or_
    return " OR ".join(alternatives)


# Global parser instance
_parser: FilterParser | None = None


def get_parser() -> FilterParser:
    """Get or create the global parser instance."""
    global _parser
    if _parser is None:
        _parser = FilterParser()
    return _parser


def parse_expression(expression: str) -> UnitFilter:
    """Parse an expression string.

    Convenience function using the global parser.

    Args:
        expression: The expression to parse.

    Returns:
        Parsed UnitFilter tree.
    """
    return get_parser().parse(expression)
