"""Fundraiser data sources."""

from .sheets import FundraiserSnapshot, SheetsClient, extract_snapshot, parse_sheet_date

__all__ = [
    "FundraiserSnapshot",
    "SheetsClient",
    "extract_snapshot",
    "parse_sheet_date",
]
