"""
File parsers module.
"""

from parsers.csv_parser import (
    parse_csv,
    RawRow,
    RawTable,
)

__all__ = [
    "parse_csv",
    "RawRow",
    "RawTable",
]
