"""tourbooks Command Line Interface.

Available commands:
- statement: Running-balance statement for a CSV/Excel book file
- tds: TDS rate and withheld amount for one payment
"""

from .main import main

__all__ = ["main"]
