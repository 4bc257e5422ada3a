from __future__ import annotations


def _finish_first_step(client, created):
    task_id = created["tasks"][0]["id"]
    response = client.patch(f"/api/tasks/{task_id}/status", json={"status": "done"})
    assert response.status_code == 200


def test_pending_approvals_are_listed_by_default(client, workflow_factory):
    created = workflow_factory()
    approval_id = created["approvals"][0]["id"]

    pending = client.get("/api/approvals").get_json()
    assert [approval["id"] for approval in pending] == [approval_id]
    assert pending[0]["stepName"] == "B"

    client.post(f"/api/approvals/{approval_id}/reject", json={"comment": "missing receipts"})

    assert client.get("/api/approvals").get_json() == []
    rejected = client.get("/api/approvals?status=rejected").get_json()
    assert [approval["id"] for approval in rejected] == [approval_id]
    assert len(client.get("/api/approvals?status=all").get_json()) == 1
    assert client.get("/api/approvals?status=maybe").status_code == 400


def test_list_approvals_by_workflow(client, workflow_factory):
    first = workflow_factory()
    workflow_factory()

    scoped = client.get(f"/api/approvals?workflowId={first['workflow']['id']}").get_json()

    assert [approval["id"] for approval in scoped] == [first["approvals"][0]["id"]]


def test_reject_blocks_the_workflow(client, workflow_factory):
    created = workflow_factory()
    workflow_id = created["workflow"]["id"]
    approval_id = created["approvals"][0]["id"]
    _finish_first_step(client, created)

    response = client.post(
        f"/api/approvals/{approval_id}/reject",
        json={"comment": "missing receipts"},
        headers={"X-User-Id": "boss"},
    )

    assert response.status_code == 200
    decided = response.get_json()
    assert decided["status"] == "rejected"
    assert decided["approver"] == "boss"
    assert decided["comment"] == "missing receipts"

    detail = client.get(f"/api/workflows/{workflow_id}").get_json()
    assert detail["status"] == "pending_approval"
    assert detail["currentStepOrder"] == 2
    assert client.post(f"/api/workflows/{workflow_id}/advance").get_json()["outcome"] == "blocked"


def test_decided_approval_cannot_be_decided_again(client, workflow_factory):
    created = workflow_factory()
    approval_id = created["approvals"][0]["id"]
    _finish_first_step(client, created)

    assert client.post(f"/api/approvals/{approval_id}/reject").status_code == 200

    again = client.post(f"/api/approvals/{approval_id}/approve")
    assert again.status_code == 409
    assert "already rejected" in again.get_json()["error"]

    detail = client.get(f"/api/workflows/{created['workflow']['id']}").get_json()
    assert detail["currentStepOrder"] == 2


def test_early_approval_is_kept_until_its_step(client, workflow_factory):
    created = workflow_factory()
    workflow_id = created["workflow"]["id"]
    approval_id = created["approvals"][0]["id"]

    response = client.post(f"/api/approvals/{approval_id}/approve")
    assert response.status_code == 200
    detail = client.get(f"/api/workflows/{workflow_id}").get_json()
    assert detail["currentStepOrder"] == 1

    _finish_first_step(client, created)
    detail = client.get(f"/api/workflows/{workflow_id}").get_json()
    assert detail["currentStepOrder"] == 2
    assert detail["status"] == "pending_approval"

    advanced = client.post(f"/api/workflows/{workflow_id}/advance").get_json()
    assert advanced["outcome"] == "advanced"
    assert advanced["workflow"]["currentStepOrder"] == 3


def test_decide_unknown_approval(client):
    assert client.post("/api/approvals/9999/approve").status_code == 404
    assert client.post("/api/approvals/9999/reject").status_code == 404
