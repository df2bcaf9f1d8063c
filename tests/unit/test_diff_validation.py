from __future__ import annotations
from void_checks.models.outcomes import Matched, Skipped, Update, Warned
from void_checks.models.record import StoredRecord
from void_checks.models.row_data import RawRow
from void_checks.services.diff import NO_CHANGES, diff_row
from void_checks.services.validation import validate_status

RECORD = StoredRecord(id="1", check_number="100", notes="old", completion_status="Pending")


def _matched(**kw) -> Matched:
    return Matched(row=RawRow(row_number=2, id="1", **kw), record=RECORD)


def test_valid_status_passes_through():
    m = _matched(status="Complete")
    assert validate_status(m) is m


def test_empty_status_passes_through():
    m = _matched(status="", notes="x")
    assert validate_status(m) is m


def test_invalid_status_rejects_row():
    out = validate_status(_matched(status="Voided", notes="changed"))
    assert isinstance(out, Warned)
    assert out.reason == 'Invalid status "Voided". Must be: Pending, Complete, Request Invalidated'
    # 照合済レコードの Check # を付ける
    assert out.check_number == "100"


def test_status_match_is_case_sensitive():
    out = validate_status(_matched(status="complete"))
    assert isinstance(out, Warned)


def test_diff_both_fields():
    out = diff_row(_matched(notes="new", status="Complete"))
    assert isinstance(out, Update)
    assert out.to_dict() == {
        "row": 2,
        "id": "1",
        "checkNumber": "100",
        "changes": {
            "notes": {"from": "old", "to": "new"},
            "completion_status": {"from": "Pending", "to": "Complete"},
        },
    }


def test_diff_notes_only_when_status_blank():
    out = diff_row(_matched(notes="new", status=""))
    assert isinstance(out, Update)
    assert set(out.changes) == {"notes"}


def test_empty_notes_cell_clears_notes():
    out = diff_row(_matched(notes=""))
    assert isinstance(out, Update)
    assert out.changes["notes"].to_value == ""


def test_absent_notes_column_is_not_diffed():
    out = diff_row(_matched(notes=None, status="Pending"))
    assert isinstance(out, Skipped)
    assert out.reason == NO_CHANGES
    assert out.to_dict() == {"row": 2, "id": "1", "reason": "No changes"}


def test_identical_values_skip():
    out = diff_row(_matched(notes="old", status="Pending"))
    assert isinstance(out, Skipped)
    assert out.record_id == "1"
