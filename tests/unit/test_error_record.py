from __future__ import annotations

import json

import pytest

from void_checks.models.error_record import ErrorRecord

"""Unit tests for ErrorRecord model."""


def test_create_and_json_line():
    rec = ErrorRecord.create(
        file="upload.xlsx",
        row=7,
        error_type="PERSIST_ERROR",
        message="value too long",
        record_id="5b6f",
    )
    data = json.loads(rec.to_json_line())
    assert data["file"] == "upload.xlsx"
    assert data["row"] == 7
    assert data["record_id"] == "5b6f"
    assert data["error_type"] == "PERSIST_ERROR"
    assert data["message"] == "value too long"
    assert data["timestamp"].endswith("Z")
    assert set(data) == {"timestamp", "file", "row", "record_id", "error_type", "message"}


def test_upload_level_error_has_no_record():
    data = json.loads(ErrorRecord.create("x.xlsx", -1, "SCHEMA_ERROR", "bad").to_json_line())
    assert data["row"] == -1
    assert data["record_id"] is None


def test_non_ascii_message_kept():
    line = ErrorRecord.create("請求.xlsx", 2, "PERSIST_ERROR", "重複キー").to_json_line()
    assert "重複キー" in line


def test_frozen():
    rec = ErrorRecord.create("x.xlsx", 1, "E", "m")
    with pytest.raises(AttributeError):
        rec.row = 2  # type: ignore[misc]
