"""Evaluator for matching unit configurations against filter trees."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from unitfilter.logging import get_logger
from unitfilter.matcher.filter import UnitFilter
from unitfilter.matcher.parser import parse_expression
from unitfilter.units.models import UnitConfig

logger = get_logger(__name__)

Predicate = Callable[[UnitConfig], bool]


def _build_constraints(properties: UnitConfig) -> list[tuple[bool, Predicate]]:
    """Build the ordered (is_set, predicate) pairs for a node's properties.

    Order is type, placement location, location root, location type.
    """
    placement = properties.placement_config
    location = properties.location_config
    return [
        (
            "unit_type" in properties.model_fields_set,
            lambda unit: unit.unit_type == properties.unit_type,
        ),
        (
            "location_id" in placement.model_fields_set,
            lambda unit: unit.placement_config.location_id == placement.location_id,
        ),
        (
            "root" in location.model_fields_set,
            lambda unit: unit.location_config.root == location.root,
        ),
        (
            "location_type" in location.model_fields_set,
            lambda unit: unit.location_config.location_type == location.location_type,
        ),
    ]


class _PropertyTest:
    """Local property test of a single node, with negation applied."""

    __slots__ = ("negate", "constraints")

    def __init__(self, node: UnitFilter):
        self.negate = node.negate
        self.constraints = _build_constraints(node.properties)

    def __call__(self, unit: UnitConfig) -> bool:
        # The first failing constraint decides; later ones are not evaluated
        for is_set, predicate in self.constraints:
            if is_set and not predicate(unit):
                return self.negate
        return not self.negate


class UnitFilterEvaluator:
    """Evaluator for a unit filter tree.

    A node matches when ``(property test AND and-child) OR or-child`` holds.
    The OR chain of the root is flattened into a list of alternatives, and
    the AND chain of each alternative into a list of property tests, so
    long chains are evaluated with loops. Only an AND child that has an OR
    child of its own gets a nested evaluator.

    Everything is built once at construction, so one instance can be reused
    across many units and shared between threads. The filter tree is only
    read, never modified. Building an evaluator for a cyclic tree does not
    terminate.
    """

    def __init__(self, unit_filter: UnitFilter):
        """Initialize with a filter tree.

        Args:
            unit_filter: Root node of the filter tree.
        """
        self.filter = unit_filter
        self._alternatives: list[tuple[list[_PropertyTest], UnitFilterEvaluator | None]] = []

        node: UnitFilter | None = unit_filter
        while node is not None:
            self._alternatives.append(self._build_alternative(node))
            node = node.or_

        self._property_test = self._alternatives[0][0][0]

    @classmethod
    def from_string(cls, expression_str: str) -> "UnitFilterEvaluator":
        """Create an evaluator from a filter expression string.

        Args:
            expression_str: Expression string to parse.

        Returns:
            UnitFilterEvaluator instance.
        """
        return cls(parse_expression(expression_str))

    @staticmethod
    def _build_alternative(
        node: UnitFilter,
    ) -> tuple[list[_PropertyTest], UnitFilterEvaluator | None]:
        """Collect the property tests along a node's AND chain.

        The chain stops at the first AND child with an OR child, which is
        evaluated as a whole by a nested evaluator.
        """
        tests = [_PropertyTest(node)]
        child = node.and_
        while child is not None and child.or_ is None:
            tests.append(_PropertyTest(child))
            child = child.and_
        nested = UnitFilterEvaluator(child) if child is not None else None
        return tests, nested

    def property_match(self, unit: UnitConfig) -> bool:
        """Test the root node's own property constraints, with negation applied.

        The first failing constraint decides the result; later constraints
        are not evaluated.
        """
        return self._property_test(unit)

    def matches(self, unit: UnitConfig) -> bool:
        """Check if a unit matches the filter tree.

        Args:
            unit: The unit to check.

        Returns:
            True if the unit matches, False otherwise.
        """
        for tests, nested in self._alternatives:
            if all(test(unit) for test in tests) and (nested is None or nested.matches(unit)):
                return True
        return False

    def select(self, units: Iterable[UnitConfig]) -> list[UnitConfig]:
        """Select the matching units, keeping their input order.

        Args:
            units: Candidate units.

        Returns:
            Matching units; empty if none match.
        """
        candidates = list(units)
        selected = [unit for unit in candidates if self.matches(unit)]
        logger.debug(
            "Filtered units",
            candidates=len(candidates),
            matched=len(selected),
        )
        return selected


def match(unit_filter: UnitFilter, unit: UnitConfig) -> bool:
    """Check whether a unit matches a filter tree.

    Args:
        unit_filter: The filter tree.
        unit: The unit to check.

    Returns:
        True if the unit matches.
    """
    return UnitFilterEvaluator(unit_filter).matches(unit)


def select_matching(
    unit_filter: UnitFilter,
    units: Iterable[UnitConfig],
) -> list[UnitConfig]:
    """Return the units matching a filter tree, in input order.

    Args:
        unit_filter: The filter tree.
        units: Candidate units.

    Returns:
        List of matching units.
    """
    return UnitFilterEvaluator(unit_filter).select(units)


def evaluate_unit(unit: UnitConfig, expression: str) -> bool:
    """Evaluate whether a unit matches a filter expression string.

    Convenience function for one-off evaluations.

    Args:
        unit: The unit to check.
        expression: The expression string.

    Returns:
        True if the unit matches.
    """
    return UnitFilterEvaluator.from_string(expression).matches(unit)
