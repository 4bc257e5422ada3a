from __future__ import annotations

import json


def test_activity_is_recorded_for_progression(client, workflow_factory):
    created = workflow_factory()
    workflow_id = created["workflow"]["id"]
    client.patch(
        f"/api/tasks/{created['tasks'][0]['id']}/status",
        json={"status": "done"},
        headers={"X-User-Id": "carol"},
    )

    response = client.get(f"/api/logs?workflowId={workflow_id}")

    assert response.status_code == 200
    entries = response.get_json()
    assert [entry["source"] for entry in entries] == ["workflow", "task", "workflow"]
    assert entries[0]["message"].startswith("workflow 'Trip to Berlin' advanced from step 1 to step 2")
    assert entries[1]["actor"] == "carol"
    assert entries[2]["actor"] == "alice"
    assert entries[2]["createdAt"].endswith("Z")


def test_logs_filter_by_source(client, workflow_factory):
    created = workflow_factory()
    client.post(f"/api/approvals/{created['approvals'][0]['id']}/reject")

    entries = client.get("/api/logs?source=approval").get_json()

    assert len(entries) == 1
    assert entries[0]["message"] == "approval 'B' (step 2) rejected"
    assert client.get("/api/logs?source=nope").status_code == 400


def test_logs_download_is_ndjson_in_chronological_order(client, workflow_factory):
    created = workflow_factory()
    client.patch(f"/api/workflows/{created['workflow']['id']}/status", json={"status": "cancelled"})

    response = client.get("/api/logs/download")

    assert response.status_code == 200
    assert response.mimetype == "application/x-ndjson"
    assert "activity-logs.ndjson" in response.headers["Content-Disposition"]
    lines = [json.loads(line) for line in response.get_data(as_text=True).splitlines()]
    assert [line["id"] for line in lines] == sorted(line["id"] for line in lines)
    assert len(lines) == 2
