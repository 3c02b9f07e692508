"""Entry point for running unitfilter as a module.

Allows running with: python -m unitfilter
"""

from unitfilter.cli import app

if __name__ == "__main__":
    app()
