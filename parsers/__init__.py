"""
Upload parsers.

tabular_parser reads bytes into rows; price_sheet_parser turns rows into
price candidates.
"""

from parsers.tabular_parser import (
    FileFormat,
    TabularSheet,
    detect_format,
    detect_delimiter,
    split_records,
    parse,
)
from parsers.price_sheet_parser import (
    FIXED_COLUMNS,
    IssueKind,
    PriceCandidate,
    ImportIssue,
    NormalizedSheet,
    validate_header,
    normalize,
)

__all__ = [
    "FileFormat",
    "TabularSheet",
    "detect_format",
    "detect_delimiter",
    "split_records",
    "parse",
    "FIXED_COLUMNS",
    "IssueKind",
    "PriceCandidate",
    "ImportIssue",
    "NormalizedSheet",
    "validate_header",
    "normalize",
]
