"""Tests for bank statement parsing."""

from decimal import Decimal

import pandas as pd
import pytest

from condobill.core.errors import StatementFormatError
from condobill.services.statements import (
    MatchedRow,
    SkippedRow,
    UnmatchedRow,
    load_statement,
    match_unit,
    parse_amount,
    parse_statement_frame,
)

UNIT_IDS = {"0903", "1204", "K05"}

ROWS = [
    ["Ngân hàng ABC - Sao kê tài khoản", "", ""],
    ["Ngày", "Số tiền ghi có", "Nội dung"],
    ["01/07/2025", "2,729,203", "CK 0903 T07"],
    ["02/07/2025", "500000", "Thanh toan K05"],
    ["03/07/2025", "100000", "chuyen tien"],
    ["03/07/2025", "", "phi dich vu"],
    ["04/07/2025", "-100", "hoan tien 1204"],
    ["04/07/2025", "1,000", "P0903 bo sung"],
]


def test_parse_statement_frame_types_every_row():
    result = parse_statement_frame(pd.DataFrame(ROWS), UNIT_IDS)

    kinds = [type(row) for row in result.rows]
    assert kinds == [
        MatchedRow,
        MatchedRow,
        UnmatchedRow,
        SkippedRow,
        SkippedRow,
        MatchedRow,
    ]
    assert result.rows[0].row_number == 3
    assert result.unmatched[0].amount == Decimal("100000")


def test_to_matches_sums_per_unit():
    result = parse_statement_frame(pd.DataFrame(ROWS), UNIT_IDS)

    assert result.to_matches() == {
        "0903": Decimal("2730203"),
        "K05": Decimal("500000"),
    }


def test_missing_header_raises():
    frame = pd.DataFrame([["a", "b"], ["1", "2"]])
    with pytest.raises(StatementFormatError):
        parse_statement_frame(frame, UNIT_IDS)


def test_load_statement_from_csv(tmp_path):
    path = tmp_path / "statement.csv"
    pd.DataFrame(ROWS).to_csv(path, header=False, index=False)

    result = load_statement(path, UNIT_IDS)

    assert len(result.matched) == 3
    assert result.to_matches()["0903"] == Decimal("2730203")


@pytest.mark.parametrize("name", ["statement.xlsx", "statement.xls", "statement.csv"])
def test_unreadable_file_raises_format_error(tmp_path, name):
    path = tmp_path / name
    path.write_bytes(b"" if name.endswith(".csv") else b"not a spreadsheet")

    with pytest.raises(StatementFormatError):
        load_statement(path, UNIT_IDS)


@pytest.mark.parametrize(
    "cell, expected",
    [
        ("1,500,000", Decimal("1500000")),
        ("1500000.5", Decimal("1500001")),
        ("", None),
        ("abc", None),
        (None, None),
        (float("nan"), None),
    ],
)
def test_parse_amount(cell, expected):
    assert parse_amount(cell) == expected


@pytest.mark.parametrize(
    "description, expected",
    [
        ("CK 0903 T07", "0903"),
        ("Phong 1204 thang 7", "1204"),
        ("thanh toan k05", "K05"),
        ("CK 0999 T07", None),
        ("FT25190903 chuyen khoan", None),
        ("", None),
    ],
)
def test_match_unit(description, expected):
    assert match_unit(description, UNIT_IDS) == expected
