from __future__ import annotations

from pathlib import Path

from void_checks.db.memory import InMemoryRecordStore
from void_checks.db.store import StoreError
from void_checks.web.services import get_store

"""Upload endpoint end to end: multipart -> parse -> diff -> (apply) -> JSON."""

URL = "/api/upload-spreadsheet"
XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _post(api, action, payload, name="export.xlsx"):
    return api.post(URL, data={"action": action}, files={"file": (name, payload, XLSX)})


def test_preview_returns_diff_without_writing(api, make_workbook):
    payload = make_workbook([
        ["ID", "Check #", "Notes", "Completion Status"],
        ["1", "100", "reviewed", "Complete"],
        [None, "200", "x", ""],
        ["4", "300", "done", "Complete"],
    ])
    res = _post(api, "preview", payload)
    assert res.status_code == 200
    body = res.json()
    assert body["updates"] == [{
        "row": 2,
        "id": "1",
        "checkNumber": "100",
        "changes": {
            "notes": {"from": "", "to": "reviewed"},
            "completion_status": {"from": "Pending", "to": "Complete"},
        },
    }]
    assert body["warnings"] == [
        {"row": 3, "checkNumber": "200", "message": "Multiple records for Check #200 — skipped (ambiguous)"}
    ]
    assert body["skipped"] == [{"row": 4, "id": "4", "reason": "No changes"}]
    assert api.store.get("1")["completion_status"] == "Pending"


def test_apply_writes_and_reports(api, make_workbook, temp_workdir: Path):
    payload = make_workbook([["ID", "Notes", "Completion Status"], ["1", "reviewed", "Complete"]])
    res = _post(api, "apply", payload)
    assert res.status_code == 200
    assert res.json() == {
        "applied": [{"id": "1", "checkNumber": "100"}],
        "errors": [],
        "warnings": [],
        "skipped": [],
    }
    stored = api.store.get("1")
    assert stored["completion_status"] == "Complete"
    assert stored["sign_off_date"] is not None
    # エラーが無ければ error log は作られない
    assert list((temp_workdir / "logs").glob("errors-*.log")) == []


def test_apply_partial_failure_is_200(api, make_workbook, sample_rows, temp_workdir: Path):
    class FlakyStore(InMemoryRecordStore):
        def update_record(self, record_id, fields):
            if record_id == "1":
                raise StoreError("lock timeout")
            return super().update_record(record_id, fields)

    store = FlakyStore(sample_rows)
    api.app.dependency_overrides[get_store] = lambda: store
    payload = make_workbook([["ID", "Notes"], ["1", "a"], ["2", "b"]])
    res = _post(api, "apply", payload)
    assert res.status_code == 200
    body = res.json()
    assert body["errors"] == [{"id": "1", "error": "lock timeout"}]
    assert body["applied"] == [{"id": "2", "checkNumber": "200"}]
    assert len(list((temp_workdir / "logs").glob("errors-*.log"))) == 1


def test_missing_file_is_400(api):
    res = api.post(URL, data={"action": "preview"})
    assert res.status_code == 400
    assert res.json() == {"error": "No file provided"}


def test_invalid_action_is_400(api, make_workbook):
    res = _post(api, "delete", make_workbook([["ID", "Notes"], ["1", "x"]]))
    assert res.status_code == 400
    assert "Invalid action" in res.json()["error"]


def test_schema_error_is_400(api, make_workbook):
    res = _post(api, "apply", make_workbook([["Notes"], ["x"]]))
    assert res.status_code == 400
    assert res.json() == {"error": 'Spreadsheet must have an "ID" or "Check #" column'}


def test_corrupt_file_is_400(api):
    res = _post(api, "preview", b"not a workbook")
    assert res.status_code == 400
    assert res.json()["error"].startswith("Unable to read spreadsheet")


def test_store_failure_is_500(api, make_workbook, sample_rows, temp_workdir: Path):
    class DownStore(InMemoryRecordStore):
        def fetch_import_snapshot(self):
            raise StoreError("could not connect to server")

    api.app.dependency_overrides[get_store] = lambda: DownStore(sample_rows)
    res = _post(api, "preview", make_workbook([["ID", "Notes"], ["1", "x"]]))
    assert res.status_code == 500
    assert res.json() == {"error": "Failed to process spreadsheet", "message": "could not connect to server"}
