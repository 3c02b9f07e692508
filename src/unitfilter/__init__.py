"""unitfilter - Select smart-home unit configurations with filter trees.

Evaluates AND/OR/NOT filter trees of property constraints against unit
configurations from a registry.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
