from __future__ import annotations


def test_task_status_change_without_done_does_not_advance(client, workflow_factory):
    created = workflow_factory()
    task_id = created["tasks"][0]["id"]
    workflow_id = created["workflow"]["id"]

    for status in ("in_progress", "review"):
        response = client.patch(f"/api/tasks/{task_id}/status", json={"status": status})
        assert response.status_code == 200
        assert response.get_json()["status"] == status

    detail = client.get(f"/api/workflows/{workflow_id}").get_json()
    assert detail["currentStepOrder"] == 1
    assert detail["status"] == "in_progress"


def test_task_status_validation(client, workflow_factory):
    created = workflow_factory()
    task_id = created["tasks"][0]["id"]

    assert client.patch(f"/api/tasks/{task_id}/status", json={"status": "blocked"}).status_code == 400
    assert client.patch(f"/api/tasks/{task_id}/status", json={}).status_code == 400
    assert client.patch("/api/tasks/9999/status", json={"status": "done"}).status_code == 404


def test_partial_task_update(client, workflow_factory):
    created = workflow_factory()
    task = created["tasks"][0]

    response = client.patch(
        f"/api/tasks/{task['id']}",
        json={"title": "Collect receipts", "priority": "high", "assignee": "bob"},
    )

    assert response.status_code == 200
    updated = response.get_json()
    assert updated["title"] == "Collect receipts"
    assert updated["priority"] == "high"
    assert updated["assignee"] == "bob"
    assert updated["status"] == "todo"
    assert updated["description"] == task["description"]

    cleared = client.patch(f"/api/tasks/{task['id']}", json={"assignee": None}).get_json()
    assert cleared["assignee"] is None
    assert cleared["title"] == "Collect receipts"


def test_task_update_validation(client, workflow_factory):
    created = workflow_factory()
    task_id = created["tasks"][0]["id"]

    response = client.patch(f"/api/tasks/{task_id}", json={"title": "  ", "priority": "someday"})

    assert response.status_code == 400
    assert len(response.get_json()["errors"]) == 2
    assert client.patch("/api/tasks/9999", json={"title": "x"}).status_code == 404


def test_editing_a_done_task_does_not_advance_again(client, workflow_factory):
    created = workflow_factory(
        steps=[
            {"order": 1, "name": "A", "type": "task"},
            {"order": 2, "name": "B", "type": "task"},
        ],
    )
    task_id = created["tasks"][0]["id"]
    workflow_id = created["workflow"]["id"]

    client.patch(f"/api/tasks/{task_id}/status", json={"status": "done"})
    client.patch(f"/api/tasks/{task_id}", json={"title": "Renamed"})

    detail = client.get(f"/api/workflows/{workflow_id}").get_json()
    assert detail["currentStepOrder"] == 2
    assert detail["status"] == "in_progress"


def test_list_tasks_filters(client, workflow_factory):
    first = workflow_factory()
    second = workflow_factory()
    first_task = first["tasks"][0]["id"]
    second_task = second["tasks"][0]["id"]
    client.patch(f"/api/tasks/{first_task}", json={"status": "review", "assignee": "bob"})

    by_workflow = client.get(f"/api/tasks?workflowId={second['workflow']['id']}").get_json()
    assert [task["id"] for task in by_workflow] == [second_task]

    by_status = client.get("/api/tasks?status=review").get_json()
    assert [task["id"] for task in by_status] == [first_task]

    by_assignee = client.get("/api/tasks?assignee=bob").get_json()
    assert [task["id"] for task in by_assignee] == [first_task]

    everything = client.get("/api/tasks").get_json()
    assert {task["id"] for task in everything} == {first_task, second_task}

    assert client.get("/api/tasks?status=later").status_code == 400
    assert client.get("/api/tasks?workflowId=abc").status_code == 400
