from __future__ import annotations

URL = "/api/submissions"


def test_list_submissions(api):
    res = api.get(URL)
    assert res.status_code == 200
    assert {r["id"] for r in res.json()} == {"1", "2", "3", "4"}


def test_create_submission_forces_pending(api):
    res = api.post(URL, json={
        "check_number": "700",
        "check_amount": "45.10",
        "owner_number": "O-9",
        "check_date": "2024-04-30",
    })
    assert res.status_code == 201
    body = res.json()
    assert body["completion_status"] == "Pending"
    assert body["sign_off_date"] is None
    assert body["created_by"] == "Unknown User"
    assert body["check_amount"] == 45.1
    assert body["request_date"]
    assert api.store.get(body["id"])["check_number"] == "700"


def test_create_submission_validation_error(api):
    res = api.post(URL, json={"check_number": "700"})
    assert res.status_code == 422


def test_single_update_complete_sets_sign_off(api):
    res = api.patch(URL, json={"id": "1", "notes": "voided", "completion_status": "Complete"})
    assert res.status_code == 200
    body = res.json()
    assert body["notes"] == "voided"
    assert body["sign_off_date"] is not None

    res = api.patch(URL, json={"id": "1", "completion_status": "Pending"})
    assert res.json()["sign_off_date"] is None


def test_single_update_ignores_non_editable_fields(api):
    res = api.patch(URL, json={"id": "1", "owner_number": "O-2", "created_by": "mallory"})
    assert res.status_code == 200
    assert api.store.get("1")["created_by"] == "alice@example.com"
    assert api.store.get("1")["owner_number"] == "O-2"


def test_single_update_attachments(api):
    files = [{"name": "void.pdf", "url": "https://files.example.com/void.pdf"}]
    res = api.patch(URL, json={"id": "1", "attachments": files})
    assert res.status_code == 200
    assert res.json()["attachments"] == files
    assert api.store.get("1")["attachments"] == files


def test_single_update_coerces_check_amount(api):
    res = api.patch(URL, json={"id": "1", "check_amount": "12.50"})
    assert res.status_code == 200
    assert api.store.get("1")["check_amount"] == 12.5


def test_single_update_invalid_check_amount_is_400(api):
    res = api.patch(URL, json={"id": "1", "check_amount": "abc"})
    assert res.status_code == 400
    assert res.json() == {"error": "Invalid check_amount"}
    assert api.store.get("1")["check_amount"] == 125.5


def test_bulk_status_update(api):
    res = api.patch(URL, json={"ids": ["2", "3"], "completion_status": "Complete"})
    assert res.status_code == 200
    rows = res.json()
    assert [r["id"] for r in rows] == ["2", "3"]
    assert all(r["sign_off_date"] for r in rows)


def test_invalid_status_is_400(api):
    res = api.patch(URL, json={"ids": ["2"], "completion_status": "Voided"})
    assert res.status_code == 400
    assert res.json()["error"].startswith('Invalid status "Voided"')
    res = api.patch(URL, json={"id": "2", "completion_status": "Voided"})
    assert res.status_code == 400


def test_update_missing_id_is_400(api):
    res = api.patch(URL, json={"notes": "x"})
    assert res.status_code == 400
    assert res.json() == {"error": "Missing id"}


def test_update_unknown_id_is_404(api):
    res = api.patch(URL, json={"id": "nope", "notes": "x"})
    assert res.status_code == 404


def test_update_without_fields_is_400(api):
    res = api.patch(URL, json={"id": "1"})
    assert res.status_code == 400


def test_delete_submission(api):
    res = api.request("DELETE", URL, json={"id": "1"})
    assert res.status_code == 200
    assert res.json() == {"success": True}
    assert api.store.get("1") is None


def test_delete_missing_id_is_400(api):
    res = api.request("DELETE", URL, json={})
    assert res.status_code == 400
    assert res.json() == {"error": "Missing id"}
