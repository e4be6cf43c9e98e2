"""
Bank statement text formats.

Each format is recognised by a pattern somewhere in the statement text
and knows how to read transaction lines out of it. Formats are checked
in order; Generic CSV is last and is also the default.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

from src.models import ParsedTransaction, TransactionType

# "01/15/2024  Coffee Shop  -$4.50"
_FULL_DATE_LINE = re.compile(r"(\d{1,2}/\d{1,2}/\d{2,4})\s+(.+?)\s+(-?\$?[\d,]+\.\d{2})")
# "01/15  Coffee Shop  -$4.50"
_SHORT_DATE_LINE = re.compile(r"(\d{1,2}/\d{1,2})\s+(.+?)\s+(-?\$?[\d,]+\.\d{2})")

_CSV_SPLIT = re.compile(r"[,\t]")


def parse_amount(raw: str) -> Optional[Decimal]:
    """Signed amount from "-$1,234.56" style text, or None."""
    cleaned = raw.strip().replace("$", "").replace(",", "")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


def _to_parsed(date_text: str, description: str, amount: Decimal) -> ParsedTransaction:
    return ParsedTransaction(
        date=date_text,
        description=description.strip(),
        amount=abs(amount),
        type=TransactionType.EXPENSE if amount < 0 else TransactionType.INCOME,
    )


def _line_extractor(
    line_pattern: re.Pattern,
    append_year: bool = False,
) -> Callable[[str], list[ParsedTransaction]]:
    def extract(text: str) -> list[ParsedTransaction]:
        transactions = []
        for line in text.split("\n"):
            match = line_pattern.search(line)
            if not match:
                continue
            date_text, description, amount_text = match.groups()
            amount = parse_amount(amount_text)
            if amount is None or not description.strip():
                continue
            if append_year:
                date_text = f"{date_text}/{date.today().year}"
            transactions.append(_to_parsed(date_text, description, amount))
        return transactions
    return extract


def _extract_csv(text: str) -> list[ParsedTransaction]:
    transactions = []
    # First line is the header.
    for line in text.split("\n")[1:]:
        parts = _CSV_SPLIT.split(line)
        if len(parts) < 3:
            continue
        date_text = parts[0].strip()
        description = parts[1].strip()
        amount = parse_amount(parts[2])
        if amount is None or not date_text or not description:
            continue
        transactions.append(_to_parsed(date_text, description, amount))
    return transactions


@dataclass(frozen=True)
class BankStatementFormat:
    name: str
    pattern: re.Pattern
    extract_transactions: Callable[[str], list[ParsedTransaction]]


BANK_FORMATS = [
    BankStatementFormat(
        name="Chase",
        pattern=re.compile(r"chase|jpmorgan", re.IGNORECASE),
        extract_transactions=_line_extractor(_FULL_DATE_LINE),
    ),
    BankStatementFormat(
        name="Bank of America",
        pattern=re.compile(r"bank of america|\bboa\b", re.IGNORECASE),
        extract_transactions=_line_extractor(_SHORT_DATE_LINE, append_year=True),
    ),
    BankStatementFormat(
        name="Wells Fargo",
        pattern=re.compile(r"wells fargo", re.IGNORECASE),
        extract_transactions=_line_extractor(_FULL_DATE_LINE),
    ),
    BankStatementFormat(
        name="Generic CSV",
        pattern=re.compile(r"date.*description.*amount", re.IGNORECASE),
        extract_transactions=_extract_csv,
    ),
]


def detect_bank_format(text: str) -> BankStatementFormat:
    """First format whose pattern appears in the text; Generic CSV otherwise."""
    for statement_format in BANK_FORMATS:
        if statement_format.pattern.search(text):
            return statement_format
    return BANK_FORMATS[-1]


def get_supported_banks() -> list[str]:
    return [statement_format.name for statement_format in BANK_FORMATS]


_DATE_PATTERNS = [
    ("mdy", re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")),
    ("mdy_short", re.compile(r"(\d{1,2})/(\d{1,2})/(\d{2})")),
    ("iso", re.compile(r"(\d{4})-(\d{2})-(\d{2})")),
    ("md", re.compile(r"(\d{1,2})/(\d{1,2})")),
]


def parse_statement_date(date_text: str, today: Optional[date] = None) -> datetime:
    """
    Read a statement date.

    Two-digit years below 50 are 20xx, the rest 19xx. Month/day without
    a year means the current year. Anything unreadable becomes today.
    """
    today = today or date.today()

    for kind, pattern in _DATE_PATTERNS:
        match = pattern.search(date_text)
        if not match:
            continue

        if kind == "iso":
            year, month, day = (int(part) for part in match.groups())
        elif kind == "md":
            month, day = (int(part) for part in match.groups())
            year = today.year
        else:
            month, day, year = (int(part) for part in match.groups())
            if kind == "mdy_short":
                year = 2000 + year if year < 50 else 1900 + year

        try:
            return datetime(year, month, day)
        except ValueError:
            break

    return datetime(today.year, today.month, today.day)
