"""Bank statement import: spreadsheet rows to per-unit payment amounts."""

from __future__ import annotations

import logging
import re
import zipfile
from collections.abc import Collection
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from pathlib import Path
from typing import Union

import pandas as pd

from condobill.core.entities import ZERO
from condobill.core.errors import StatementFormatError

logger = logging.getLogger(__name__)

HEADER_SEARCH_ROWS = 20
CREDIT_HEADERS = ("so tien ghi co", "số tiền ghi có", "credit amount", "credit")
DESCRIPTION_HEADERS = ("noi dung", "nội dung", "transaction detail", "description")

_APARTMENT_RE = re.compile(
    r"(?:^|[^a-zA-Z0-9])(?:P|Ph|Phong|Can|C|Apt|Căn)?\s*([0-9]{3,4})(?=[^0-9]|$)",
    re.IGNORECASE,
)
_KIOSK_RE = re.compile(r"(?:^|[^0-9A-Za-z])(K\d{2})(?=[^0-9]|$)", re.IGNORECASE)


@dataclass(frozen=True)
class MatchedRow:
    row_number: int
    unit_id: str
    amount: Decimal
    description: str


@dataclass(frozen=True)
class UnmatchedRow:
    """A credit whose description names no known unit."""

    row_number: int
    amount: Decimal
    description: str


@dataclass(frozen=True)
class SkippedRow:
    """A row without a usable positive credit amount."""

    row_number: int
    reason: str


ParsedRow = Union[MatchedRow, UnmatchedRow, SkippedRow]


@dataclass(frozen=True)
class StatementImport:
    rows: list[ParsedRow]

    @property
    def matched(self) -> list[MatchedRow]:
        return [row for row in self.rows if isinstance(row, MatchedRow)]

    @property
    def unmatched(self) -> list[UnmatchedRow]:
        return [row for row in self.rows if isinstance(row, UnmatchedRow)]

    def to_matches(self) -> dict[str, Decimal]:
        """Total credited per unit."""
        totals: dict[str, Decimal] = {}
        for row in self.matched:
            totals[row.unit_id] = totals.get(row.unit_id, ZERO) + row.amount
        return totals


def _normalise(cell) -> str:
    if cell is None or (isinstance(cell, float) and pd.isna(cell)):
        return ""
    return str(cell).strip().lower()


def find_header(frame: pd.DataFrame) -> tuple[int, int, int]:
    """Locates the header row and the credit/description column positions.

    Raises:
        StatementFormatError: if no header is found in the first rows.
    """
    for index in range(min(HEADER_SEARCH_ROWS, len(frame))):
        cells = [_normalise(cell) for cell in frame.iloc[index].tolist()]
        credit = next(
            (i for i, c in enumerate(cells) if any(h in c for h in CREDIT_HEADERS)), None
        )
        description = next(
            (i for i, c in enumerate(cells) if any(h in c for h in DESCRIPTION_HEADERS)),
            None,
        )
        if credit is not None and description is not None:
            return index, credit, description
    raise StatementFormatError(
        "Statement has no credit amount / description columns."
    )


def parse_amount(cell) -> Decimal | None:
    """Parses '1,500,000' style amounts, rounded to a whole unit."""
    text = _normalise(cell).replace(",", "")
    if not text:
        return None
    try:
        return Decimal(text).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None


def match_unit(description: str, unit_ids: Collection[str]) -> str | None:
    """Finds the first known unit code mentioned in a transfer description."""
    for match in _APARTMENT_RE.finditer(description):
        if match.group(1) in unit_ids:
            return match.group(1)
    for match in _KIOSK_RE.finditer(description):
        code = match.group(1).upper()
        if code in unit_ids:
            return code
    return None


def parse_statement_frame(
    frame: pd.DataFrame, unit_ids: Collection[str]
) -> StatementImport:
    """Parses a raw (header-less) statement sheet into typed rows."""
    header_index, credit_col, description_col = find_header(frame)
    rows: list[ParsedRow] = []
    for index in range(header_index + 1, len(frame)):
        values = frame.iloc[index].tolist()
        row_number = index + 1
        amount = parse_amount(values[credit_col])
        if amount is None:
            rows.append(SkippedRow(row_number, "no credit amount"))
            continue
        if amount <= 0:
            rows.append(SkippedRow(row_number, f"non-positive amount {amount}"))
            continue
        description = "" if pd.isna(values[description_col]) else str(values[description_col])
        unit_id = match_unit(description, unit_ids)
        if unit_id is None:
            rows.append(UnmatchedRow(row_number, amount, description))
        else:
            rows.append(MatchedRow(row_number, unit_id, amount, description))

    result = StatementImport(rows=rows)
    logger.info(
        f"Parsed statement: {len(result.matched)} matched, "
        f"{len(result.unmatched)} unmatched, {len(rows)} rows."
    )
    return result


def read_statement(path: Path | str) -> pd.DataFrame:
    """Loads the first sheet of an .xlsx/.xls/.csv file without a header."""
    path = Path(path)
    try:
        if path.suffix.lower() == ".csv":
            return pd.read_csv(path, header=None, dtype=str, keep_default_na=False)
        return pd.read_excel(path, sheet_name=0, header=None, dtype=str)
    except (ValueError, ImportError, zipfile.BadZipFile) as e:
        raise StatementFormatError(f"Cannot read statement {path.name}: {e}") from e


def load_statement(path: Path | str, unit_ids: Collection[str]) -> StatementImport:
    return parse_statement_frame(read_statement(path), unit_ids)
