"""Matcher module for unitfilter.

Provides the filter tree model, expression parsing, and unit matching.
"""

from unitfilter.matcher.evaluator import (
    UnitFilterEvaluator,
    evaluate_unit,
    match,
    select_matching,
)
from unitfilter.matcher.filter import FilterProperties, UnitFilter
from unitfilter.matcher.parser import (
    FilterParseError,
    FilterParser,
    format_filter,
    parse_expression,
)

__all__ = [
    "UnitFilter",
    "FilterProperties",
    "UnitFilterEvaluator",
    "FilterParser",
    "FilterParseError",
    "match",
    "select_matching",
    "evaluate_unit",
    "parse_expression",
    "format_filter",
]
