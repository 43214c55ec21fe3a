"""HTTP-level tests for the intake, assessment, export, and admin routers."""

import pytest
from fastapi.testclient import TestClient

from myeloma_guard.core.errors import ASSESSMENT_FAILED_MESSAGE, XRAY_FAILED_MESSAGE
from myeloma_guard.main import app
from myeloma_guard.memory.session_store import session_store


@pytest.fixture
def client():
    session_store.clear_all()
    with TestClient(app) as test_client:
        yield test_client
    session_store.clear_all()


def _new_session(client) -> str:
    response = client.post("/sessions")
    assert response.status_code == 201
    return response.json()["session_id"]


def _fill(client, sid: str) -> None:
    response = client.patch(
        f"/sessions/{sid}/record",
        json={"age": "70", "gender": "Male", "location": "Bomet East",
              "lab_results": {"kidney_issues": True}},
    )
    assert response.status_code == 200


def test_new_session_is_blank_intake(client):
    sid = _new_session(client)
    body = client.get(f"/sessions/{sid}").json()
    assert body["state"] == "Intake"
    assert body["record"]["age"] == ""
    assert body["attachments"] == {"ct": False, "xray": False, "ultrasound": False}
    assert body["result"] is None


def test_unknown_session_404(client):
    assert client.get("/sessions/nope").status_code == 404
    assert client.post("/sessions/nope/confirm").status_code == 404


def test_invalid_record_values_422(client):
    sid = _new_session(client)
    response = client.patch(
        f"/sessions/{sid}/record",
        json={"bone_marrow_biopsy": {"plasma_cell_percentage": 150}},
    )
    assert response.status_code == 422


def test_analyze_reports_field_errors(client):
    sid = _new_session(client)
    response = client.post(f"/sessions/{sid}/analyze")
    assert response.status_code == 422
    detail = response.json()["detail"]
    assert set(detail["field_errors"]) == {"age", "gender", "location"}
    assert client.get(f"/sessions/{sid}").json()["state"] == "Intake"


def test_full_flow_with_exports(client, fake_gemini, png_bytes):
    sid = _new_session(client)
    _fill(client, sid)
    upload = client.put(
        f"/sessions/{sid}/images/ct",
        files={"file": ("scan.png", png_bytes, "image/png")},
    )
    assert upload.status_code == 200
    assert upload.json()["attachments"]["ct"] is True
    client.put(f"/sessions/{sid}/notes/ct", json={"note": 'Lesion "L2"'})

    summary = client.post(f"/sessions/{sid}/analyze")
    assert summary.status_code == 200
    assert summary.json()["imaging"] == ["CT Scan"]

    confirmed = client.post(f"/sessions/{sid}/confirm")
    assert confirmed.status_code == 200
    body = confirmed.json()
    assert body["state"] == "Report"
    assert body["result"]["risk_level"] == "High"

    csv_response = client.get(f"/sessions/{sid}/export/csv")
    assert csv_response.status_code == 200
    assert csv_response.headers["content-type"].startswith("text/csv")
    assert '"Lesion ""L2"""' in csv_response.text

    pdf_response = client.get(f"/sessions/{sid}/export/pdf")
    assert pdf_response.status_code == 200
    assert pdf_response.content.startswith(b"%PDF")

    assert client.patch(f"/sessions/{sid}/record", json={"age": "1"}).status_code == 409

    reset = client.post(f"/sessions/{sid}/reset").json()
    assert reset["state"] == "Intake"
    assert reset["result"] is None
    assert reset["record"]["location"] == ""


def test_confirm_failure_returns_502_and_keeps_data(client, fake_gemini):
    fake_gemini.generate.side_effect = RuntimeError("unreachable")
    sid = _new_session(client)
    _fill(client, sid)
    client.post(f"/sessions/{sid}/analyze")

    response = client.post(f"/sessions/{sid}/confirm")

    assert response.status_code == 502
    assert response.json()["detail"] == ASSESSMENT_FAILED_MESSAGE
    body = client.get(f"/sessions/{sid}").json()
    assert body["state"] == "Intake"
    assert body["error"] == ASSESSMENT_FAILED_MESSAGE
    assert body["record"]["location"] == "Bomet East"


def test_confirm_without_analyze_409(client):
    sid = _new_session(client)
    _fill(client, sid)
    assert client.post(f"/sessions/{sid}/confirm").status_code == 409


def test_export_before_report_409(client):
    sid = _new_session(client)
    assert client.get(f"/sessions/{sid}/export/csv").status_code == 409


def test_bad_image_upload_400(client):
    sid = _new_session(client)
    response = client.put(
        f"/sessions/{sid}/images/xray",
        files={"file": ("notes.txt", b"plain text", "text/plain")},
    )
    assert response.status_code == 400


def test_xray_review_and_apply(client, fake_gemini, png_bytes):
    fake_gemini.generate.side_effect = RuntimeError("down")
    sid = _new_session(client)
    client.put(
        f"/sessions/{sid}/images/xray",
        files={"file": ("xr.png", png_bytes, "image/png")},
    )

    failed = client.post(f"/sessions/{sid}/xray/analyze")
    assert failed.status_code == 200
    assert failed.json()["finding"] == XRAY_FAILED_MESSAGE

    fake_gemini.generate.side_effect = None
    fake_gemini.generate.return_value = "Diffuse osteopenia."
    ok = client.post(f"/sessions/{sid}/xray/analyze").json()
    assert ok["finding"] == "Diffuse osteopenia."

    applied = client.post(f"/sessions/{sid}/xray/apply").json()
    assert applied["modality_notes"]["xray"] == "Diffuse osteopenia."
    assert applied["state"] == "Intake"


def test_admin_stats_and_clear(client):
    _new_session(client)
    _new_session(client)
    stats = client.get("/admin/stats").json()
    assert stats["sessions"] == 2
    assert stats["by_state"]["Intake"] == 2

    cleared = client.post("/admin/clear").json()
    assert cleared["sessions_cleared"] == 2
    assert client.get("/admin/stats").json()["sessions"] == 0
