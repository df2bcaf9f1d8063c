from __future__ import annotations

import io
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO

import pandas as pd

from ..models.row_data import RawRow

"""Uploaded spreadsheet reader.

- 1枚目のシートのみ対象。1行目をヘッダ行として扱い、2行目以降をデータ行。
- ヘッダは trim + lower-case で比較し、既知のエイリアスを論理列 (id / check_number /
  notes / status) へ解決する。それ以外の列は読み捨て。
- 行番号はシート上の位置 (ヘッダ = 1) をそのまま保持する。

pandas (openpyxl engine) で生読みし、NA 文字列変換は無効化している
("N/A" などのメモ文字列が空扱いにならないように)。
"""

__all__ = [
    "ColumnMap",
    "HEADER_ALIASES",
    "ParsedSheet",
    "SchemaError",
    "parse_rows",
    "parse_upload",
    "read_workbook",
    "resolve_columns",
]


class SchemaError(Exception):
    """Raised when an upload is unreadable or lacks the required columns."""


# 論理列 -> 受け付けるヘッダ文字列 (優先順)
HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "check_number": ("check #", "check_number", "check number"),
    "notes": ("notes",),
    "status": ("completion status", "completion_status"),
}


@dataclass(frozen=True)
class ColumnMap:
    """0-based column positions of the recognized fields (None = column absent)."""
    id: int | None = None
    check_number: int | None = None
    notes: int | None = None
    status: int | None = None

    def present(self) -> list[str]:
        return [name for name in HEADER_ALIASES if getattr(self, name) is not None]


@dataclass
class ParsedSheet:
    sheet_name: str
    columns: ColumnMap
    rows: list[RawRow]


def read_workbook(source: bytes | Path | BinaryIO) -> tuple[str, pd.DataFrame]:
    """Read the first worksheet of an .xlsx payload without header inference.

    Returns (sheet_name, raw DataFrame). Any failure to open or parse the
    workbook is reported as SchemaError.
    """
    if isinstance(source, (bytes, bytearray)):
        if not source:
            raise SchemaError("Uploaded file is empty")
        handle: Any = io.BytesIO(source)
    else:
        handle = source

    try:
        xls = pd.ExcelFile(handle, engine="openpyxl")
    except Exception as e:
        raise SchemaError(f"Unable to read spreadsheet: {e}") from e

    if not xls.sheet_names:
        raise SchemaError("No worksheet found in file")
    name = xls.sheet_names[0]
    try:
        df = xls.parse(name, header=None, dtype=object, keep_default_na=False, na_values=[])
    except Exception as e:
        raise SchemaError(f"Unable to read worksheet '{name}': {e}") from e
    return str(name), df


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        # Excel 数値セル 100 -> "100" (".0" を付けない)
        if value.is_integer():
            return str(int(value))
    elif not isinstance(value, str) and pd.isna(value):
        return ""
    return str(value).strip()


def resolve_columns(header_cells: list[Any]) -> ColumnMap:
    """Map recognized header names to column positions.

    Header text is compared trimmed and lower-cased. When the same header
    appears twice the later column wins; between aliases of one field the
    first alias in HEADER_ALIASES order wins.
    """
    positions: dict[str, int] = {}
    for idx, cell in enumerate(header_cells):
        key = _cell_text(cell).lower()
        if key:
            positions[key] = idx

    def _first(aliases: tuple[str, ...]) -> int | None:
        for alias in aliases:
            if alias in positions:
                return positions[alias]
        return None

    return ColumnMap(**{field: _first(aliases) for field, aliases in HEADER_ALIASES.items()})


def _validate_columns(columns: ColumnMap) -> None:
    if columns.id is None and columns.check_number is None:
        raise SchemaError('Spreadsheet must have an "ID" or "Check #" column')
    if columns.notes is None and columns.status is None:
        raise SchemaError('Spreadsheet must have a "Notes" and/or "Completion Status" column')


def parse_rows(df: pd.DataFrame, columns: ColumnMap) -> list[RawRow]:
    """Extract RawRows from every data row (index >= 1), skipping blank rows."""
    rows: list[RawRow] = []
    for pos in range(1, df.shape[0]):
        values = df.iloc[pos].tolist()

        def _pick(col: int | None) -> str | None:
            if col is None:
                return None
            return _cell_text(values[col]) if col < len(values) else ""

        row = RawRow(
            row_number=pos + 1,
            id=_pick(columns.id),
            check_number=_pick(columns.check_number),
            notes=_pick(columns.notes),
            status=_pick(columns.status),
        )
        if row.is_blank:
            continue
        rows.append(row)
    return rows


def parse_upload(source: bytes | Path | BinaryIO) -> ParsedSheet:
    """Read, validate and parse an uploaded spreadsheet.

    Steps:
    1. Open the workbook and take the first worksheet
    2. Resolve the header row (row 1) to a ColumnMap
    3. Require an id or check-number column, and a notes or status column
    4. Parse data rows, dropping rows whose four recognized fields are all empty
    5. Require at least one data row
    """
    sheet_name, df = read_workbook(source)
    header = df.iloc[0].tolist() if df.shape[0] > 0 else []
    columns = resolve_columns(header)
    _validate_columns(columns)

    rows = parse_rows(df, columns)
    if not rows:
        raise SchemaError("No data rows found in spreadsheet")
    return ParsedSheet(sheet_name=sheet_name, columns=columns, rows=rows)
