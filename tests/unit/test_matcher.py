from __future__ import annotations
from void_checks.models.outcomes import Matched, Warned
from void_checks.models.record import StoredRecord
from void_checks.models.row_data import RawRow
from void_checks.services.matcher import RecordIndex, match_row, match_rows


def _index() -> RecordIndex:
    return RecordIndex.build([
        StoredRecord(id="1", check_number="100"),
        StoredRecord(id="2", check_number="200"),
        StoredRecord(id="3", check_number="200"),
    ])


def test_index_groups_by_check_number():
    idx = _index()
    assert len(idx) == 3
    assert [r.id for r in idx.by_check_number["200"]] == ["2", "3"]


def test_match_by_id():
    out = match_row(RawRow(row_number=2, id="1", notes="x"), _index())
    assert isinstance(out, Matched)
    assert out.record.id == "1"


def test_unknown_id_never_falls_back_to_check_number():
    out = match_row(RawRow(row_number=5, id="999", check_number="100", notes="x"), _index())
    assert isinstance(out, Warned)
    assert out.reason == 'No record found for ID "999"'
    assert out.check_number is None


def test_match_by_unique_check_number():
    out = match_row(RawRow(row_number=2, id="", check_number="100", notes="x"), _index())
    assert isinstance(out, Matched)
    assert out.record.id == "1"


def test_ambiguous_check_number():
    out = match_row(RawRow(row_number=3, check_number="200", notes="x"), _index())
    assert isinstance(out, Warned)
    assert out.reason == "Multiple records for Check #200 — skipped (ambiguous)"
    assert out.to_dict() == {"row": 3, "checkNumber": "200", "message": out.reason}


def test_check_number_not_found():
    out = match_row(RawRow(row_number=4, check_number="555", notes="x"), _index())
    assert isinstance(out, Warned)
    assert out.reason == "No record found for Check #555"


def test_no_key_produces_no_outcome():
    assert match_row(RawRow(row_number=6, id="", check_number="", notes="x"), _index()) is None


def test_match_rows_preserves_input_order():
    rows = [
        RawRow(row_number=2, check_number="555", notes="a"),
        RawRow(row_number=3, notes="keyless"),
        RawRow(row_number=4, id="1", notes="b"),
    ]
    outcomes = match_rows(rows, _index())
    assert [o.row.row_number for o in outcomes] == [2, 4]
