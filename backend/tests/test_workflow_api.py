"""Tests for the workflow instance REST API."""

from __future__ import annotations


def test_create_workflow_from_template(client, workflow_factory):
    created = workflow_factory()
    workflow = created["workflow"]

    assert workflow["status"] == "in_progress"
    assert workflow["currentStepOrder"] == 1
    assert workflow["templateName"] == "Expense Claim"
    assert workflow["createdBy"] == "alice"
    assert [task["stepOrder"] for task in created["tasks"]] == [1]
    assert created["tasks"][0]["status"] == "todo"
    assert [approval["stepOrder"] for approval in created["approvals"]] == [2]
    assert created["approvals"][0]["status"] == "pending"
    assert created["approvals"][0]["requestedBy"] == "alice"


def test_create_workflow_defaults_creator_to_current_user(client, template_factory):
    template = template_factory()

    response = client.post(
        "/api/workflows",
        json={"templateId": template["id"], "name": "Defaults", "dueDate": "2026-12-01T09:00:00Z"},
    )

    assert response.status_code == 201
    workflow = response.get_json()["workflow"]
    assert workflow["createdBy"] == "user-001"
    assert workflow["dueDate"] == "2026-12-01T09:00:00Z"


def test_create_workflow_with_unknown_template_is_bad_request(client):
    response = client.post("/api/workflows", json={"templateId": 9999, "name": "Nope"})

    assert response.status_code == 400
    assert "not found" in response.get_json()["error"]

    listed = client.get("/api/workflows").get_json()
    assert listed == []


def test_create_workflow_validates_payload(client):
    response = client.post("/api/workflows", json={"dueDate": "tomorrow"})

    assert response.status_code == 400
    errors = " ".join(response.get_json()["errors"])
    assert "templateId" in errors
    assert "name" in errors
    assert "dueDate" in errors


def test_workflow_detail_embeds_tasks_and_approvals(client, workflow_factory):
    created = workflow_factory()
    workflow_id = created["workflow"]["id"]

    response = client.get(f"/api/workflows/{workflow_id}")

    assert response.status_code == 200
    detail = response.get_json()
    assert detail["name"] == "Trip to Berlin"
    assert [task["id"] for task in detail["tasks"]] == [created["tasks"][0]["id"]]
    assert [approval["id"] for approval in detail["approvals"]] == [created["approvals"][0]["id"]]

    assert client.get("/api/workflows/9999").status_code == 404


def test_list_workflows_filters_by_status(client, workflow_factory):
    created = workflow_factory()
    workflow_id = created["workflow"]["id"]
    client.patch(f"/api/workflows/{workflow_id}/status", json={"status": "cancelled"})
    workflow_factory()

    in_progress = client.get("/api/workflows?status=in_progress").get_json()
    cancelled = client.get("/api/workflows?status=cancelled").get_json()

    assert len(in_progress) == 1
    assert [workflow["id"] for workflow in cancelled] == [workflow_id]
    assert client.get("/api/workflows?status=bogus").status_code == 400


def test_progression_over_http(client, workflow_factory):
    created = workflow_factory()
    workflow_id = created["workflow"]["id"]
    task_id = created["tasks"][0]["id"]
    approval_id = created["approvals"][0]["id"]

    done = client.patch(f"/api/tasks/{task_id}/status", json={"status": "done"})
    assert done.status_code == 200
    detail = client.get(f"/api/workflows/{workflow_id}").get_json()
    assert detail["status"] == "pending_approval"
    assert detail["currentStepOrder"] == 2

    approved = client.post(
        f"/api/approvals/{approval_id}/approve",
        json={"comment": "ok"},
        headers={"X-User-Id": "boss"},
    )
    assert approved.status_code == 200
    assert approved.get_json()["approver"] == "boss"
    detail = client.get(f"/api/workflows/{workflow_id}").get_json()
    assert detail["status"] == "in_progress"
    assert detail["currentStepOrder"] == 3

    advanced = client.post(f"/api/workflows/{workflow_id}/advance")
    assert advanced.status_code == 200
    assert advanced.get_json()["outcome"] == "completed"
    assert advanced.get_json()["workflow"]["status"] == "completed"

    again = client.post(f"/api/workflows/{workflow_id}/advance")
    assert again.get_json()["outcome"] == "inactive"
    assert again.get_json()["workflow"]["currentStepOrder"] == 3


def test_advance_unknown_workflow_is_not_found(client):
    assert client.post("/api/workflows/9999/advance").status_code == 404


def test_status_override(client, workflow_factory):
    created = workflow_factory()
    workflow_id = created["workflow"]["id"]

    invalid = client.patch(f"/api/workflows/{workflow_id}/status", json={"status": "paused"})
    assert invalid.status_code == 400

    cancelled = client.patch(f"/api/workflows/{workflow_id}/status", json={"status": "cancelled"})
    assert cancelled.status_code == 200
    assert cancelled.get_json()["status"] == "cancelled"

    reopened = client.patch(f"/api/workflows/{workflow_id}/status", json={"status": "in_progress"})
    assert reopened.status_code == 409

    missing = client.patch("/api/workflows/9999/status", json={"status": "cancelled"})
    assert missing.status_code == 404


def test_status_override_can_complete_with_open_tasks(client, workflow_factory):
    created = workflow_factory()
    workflow_id = created["workflow"]["id"]

    response = client.patch(f"/api/workflows/{workflow_id}/status", json={"status": "completed"})

    assert response.status_code == 200
    assert response.get_json()["status"] == "completed"
    assert response.get_json()["currentStepOrder"] == 1


def test_ad_hoc_task_gates_the_current_step(client, workflow_factory):
    created = workflow_factory(patterns=[])
    workflow_id = created["workflow"]["id"]

    response = client.post(
        f"/api/workflows/{workflow_id}/tasks",
        json={"title": "Book hotel", "stepOrder": 1, "priority": "urgent", "assignee": "alice"},
    )
    assert response.status_code == 201
    task = response.get_json()
    assert task["status"] == "todo"
    assert task["priority"] == "urgent"
    assert task["patternId"] is None

    blocked = client.post(f"/api/workflows/{workflow_id}/advance")
    assert blocked.get_json()["outcome"] == "blocked"

    client.patch(f"/api/tasks/{task['id']}", json={"status": "done"})
    detail = client.get(f"/api/workflows/{workflow_id}").get_json()
    assert detail["currentStepOrder"] == 2


def test_ad_hoc_task_validation_and_missing_workflow(client):
    invalid = client.post("/api/workflows/1/tasks", json={"title": "", "stepOrder": 0})
    assert invalid.status_code == 400

    missing = client.post("/api/workflows/9999/tasks", json={"title": "x", "stepOrder": 1})
    assert missing.status_code == 404


def test_delete_workflow_keeps_tasks(client, workflow_factory):
    created = workflow_factory()
    workflow_id = created["workflow"]["id"]

    response = client.delete(f"/api/workflows/{workflow_id}")

    assert response.status_code == 204
    assert client.get(f"/api/workflows/{workflow_id}").status_code == 404
    orphaned = client.get(f"/api/tasks?workflowId={workflow_id}").get_json()
    assert [task["id"] for task in orphaned] == [created["tasks"][0]["id"]]
    assert client.delete(f"/api/workflows/{workflow_id}").status_code == 404


def test_each_request_uses_its_own_identity(client, template_factory):
    template = template_factory()
    payload = {"templateId": template["id"], "name": "Who"}

    as_alice = client.post("/api/workflows", json=payload, headers={"X-User-Id": "alice"})
    as_bob = client.post("/api/workflows", json=payload, headers={"X-User-Id": "bob"})
    anonymous = client.post("/api/workflows", json=payload)

    assert as_alice.get_json()["workflow"]["createdBy"] == "alice"
    assert as_bob.get_json()["workflow"]["createdBy"] == "bob"
    assert anonymous.get_json()["workflow"]["createdBy"] == "user-001"

    approval_id = as_alice.get_json()["approvals"][0]["id"]
    decided = client.post(f"/api/approvals/{approval_id}/reject", headers={"X-User-Id": "boss"})
    assert decided.get_json()["approver"] == "boss"
