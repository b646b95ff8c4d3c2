from io import BytesIO

import httpx
import pytest
from docx import Document

from leadengine.core.db import get_session
from leadengine.main import app

pytestmark = pytest.mark.anyio

HEADERS = {"X-Actor-ID": "emp-admin"}


@pytest.fixture
async def client(session_factory, employees):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test", headers=HEADERS) as ac:
        yield ac
    app.dependency_overrides.clear()


def _docx(*lines):
    document = Document()
    for line in lines:
        document.add_paragraph(line)
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


async def _create(client, text, **extra):
    payload = {"file_name": "leads.docx", "uploaded_by": "emp-admin", "text": text, **extra}
    return await client.post("/api/phone-batches", json=payload)


async def test_text_ingestion_creates_batch_and_tasks(client):
    resp = await _create(client, "Data From Page(Sara)\n01012345678\nData From Page(Nobody)\n01098765432")

    assert resp.status_code == 201
    batch = resp.json()
    assert batch["assignment_mode"] == "targeted"
    assert batch["total_numbers"] == 2

    tasks = (await client.get(f"/api/phone-batches/{batch['id']}/tasks")).json()
    assert [(t["phone_number"], t["assigned_to"]) for t in tasks] == [
        ("01012345678", "emp-sara"),
        ("01098765432", None),
    ]

    listed = (await client.get("/api/phone-batches")).json()
    assert [b["id"] for b in listed] == [batch["id"]]
    assert (listed[0]["task_count"], listed[0]["unassigned_count"]) == (2, 1)


async def test_ingestion_errors_map_to_status_codes(client):
    no_marker = await _create(client, "Sara\n01012345678")
    no_numbers = await _create(client, "Random Data(Sara)\nnothing here")
    strict = await _create(client, "Random Data(Sara)\n02012345678", strict=True)

    assert no_marker.status_code == 400
    assert no_numbers.status_code == 422
    assert no_numbers.json()["detail"] == "No phone numbers were found in the file."
    assert strict.status_code == 400
    assert (await client.get("/api/phone-batches")).json() == []


async def test_docx_upload_and_preview(client):
    content = _docx("Random Data(Ahmed)", "01012345678", "01098765432", "Random Data(Sara)", "01055555555")
    files = {"file": ("leads.docx", content, "application/octet-stream")}

    preview = await client.post("/api/phone-batches/preview", files=files)
    assert preview.status_code == 200
    assert preview.json()["total_numbers"] == 3
    assert (await client.get("/api/phone-batches")).json() == []

    upload = await client.post("/api/phone-batches/upload", files=files, data={"uploaded_by": "emp-admin"})
    assert upload.status_code == 201
    assert upload.json()["assignment_mode"] == "cold_calling"
    assert upload.json()["file_name"] == "leads.docx"


async def test_upload_rejects_non_word_files(client):
    resp = await client.post(
        "/api/phone-batches/upload",
        files={"file": ("leads.txt", b"Random Data(Sara)\n01012345678", "text/plain")},
        data={"uploaded_by": "emp-admin"},
    )
    corrupt = await client.post(
        "/api/phone-batches/upload",
        files={"file": ("leads.docx", b"not a zip archive", "application/octet-stream")},
        data={"uploaded_by": "emp-admin"},
    )

    assert resp.status_code == 400
    assert corrupt.status_code == 400


async def test_random_assignment_then_employee_views(client):
    batch = (await _create(client, "Random Data(x)\n01000000001\n01000000002\n01000000003")).json()

    resp = await client.post(
        f"/api/phone-batches/{batch['id']}/assign/random",
        json={"employee_ids": ["emp-sara", "emp-ahmed"], "due_in_days": 0},
    )

    assert resp.status_code == 200
    assert resp.json() == {"assigned_count": 3, "per_employee_count": {"emp-sara": 2, "emp-ahmed": 1}}

    sara_tasks = (await client.get("/api/employees/emp-sara/phone-tasks")).json()
    assert len(sara_tasks) == 2
    upcoming = (await client.get("/api/employees/emp-sara/upcoming-tasks", params={"limit": 5})).json()
    assert len(upcoming) == 2


async def test_targeted_assignment_reports_skipped_ids(client):
    batch = (await _create(client, "Random Data(x)\n01000000001")).json()
    task = (await client.get(f"/api/phone-batches/{batch['id']}/tasks")).json()[0]

    resp = await client.post(
        f"/api/phone-batches/{batch['id']}/assign/targeted",
        json={
            "assignments": [
                {"phone_task_id": task["id"], "employee_id": "emp-ahmed"},
                {"phone_task_id": "elsewhere", "employee_id": "emp-ahmed"},
            ]
        },
    )

    assert resp.status_code == 200
    assert resp.json() == {"assigned_count": 1, "skipped_task_ids": ["elsewhere"]}


async def test_name_match_preview_and_apply(client):
    batch = (
        await _create(
            client,
            "Data From Page(sara)\n01000000001\nData From Page(Nobody)\n01000000002",
            resolve_names=False,
        )
    ).json()
    tasks = (await client.get(f"/api/phone-batches/{batch['id']}/tasks")).json()

    preview = (await client.get(f"/api/phone-batches/{batch['id']}/name-matches")).json()
    assert preview == {
        "matched": [{"phone_task_id": tasks[0]["id"], "employee_id": "emp-sara"}],
        "unmatched_task_ids": [tasks[1]["id"]],
    }

    applied = await client.post(f"/api/phone-batches/{batch['id']}/assign/name-matches", json={})
    assert applied.status_code == 200
    assert applied.json()["assigned_count"] == 1


async def test_status_update_and_stats(client):
    batch = (await _create(client, "Random Data(x)\n01000000001\n01000000002")).json()
    tasks = (await client.get(f"/api/phone-batches/{batch['id']}/tasks")).json()

    resp = await client.patch(
        f"/api/phone-tasks/{tasks[0]['id']}/status", json={"call_status": "converted", "notes": "sold"}
    )

    assert resp.status_code == 200
    assert resp.json()["call_status"] == "converted"
    assert resp.json()["completed_at"] is not None

    stats = (await client.get("/api/phone-tasks/stats")).json()
    assert (stats["total"], stats["pending"], stats["completed"], stats["completed_today"]) == (2, 1, 1, 1)
    assert (await client.get("/api/phone-tasks/lead-stats")).json()["converted"] == 1


async def test_status_update_errors(client):
    missing = await client.patch("/api/phone-tasks/missing/status", json={"call_status": "called"})
    invalid = await client.patch("/api/phone-tasks/missing/status", json={"call_status": "voicemail"})

    assert missing.status_code == 404
    assert invalid.status_code == 422


async def test_calendar_rejects_inverted_range(client):
    resp = await client.get(
        "/api/employees/emp-sara/task-calendar", params={"start": "2025-03-12", "end": "2025-03-11"}
    )

    assert resp.status_code == 400


async def test_delete_batch_then_not_found(client):
    batch = (await _create(client, "Random Data(x)\n01000000001")).json()

    assert (await client.delete(f"/api/phone-batches/{batch['id']}")).status_code == 204
    assert (await client.get(f"/api/phone-batches/{batch['id']}/tasks")).status_code == 404
    assert (await client.delete(f"/api/phone-batches/{batch['id']}")).status_code == 404
    assert (
        await client.post(f"/api/phone-batches/{batch['id']}/assign/random", json={"employee_ids": ["A"]})
    ).status_code == 404
