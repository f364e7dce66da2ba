"""
API tests for task CRUD, list filtering, time tracking and timer durations.
"""


# ─────────────────────────────────────────────────────────────────────────────
# Create / read
# ─────────────────────────────────────────────────────────────────────────────


class TestCreateTask:
    def test_defaults(self, make_task, user):
        task = make_task()

        assert task["title"] == "Write report"
        assert task["user_id"] == user["id"]
        assert task["status"] == "pending"
        assert task["priority"] == "medium"
        assert task["description"] == ""
        assert task["due_date"] is None
        assert task["time_spent"] == 0
        assert task["automation_rules"] == []
        assert task["timer_settings"] == {
            "pomodoro_length": 25,
            "short_break": 5,
            "long_break": 15,
            "short_break_seconds": 0,
            "long_break_seconds": 0,
        }

    def test_partial_timer_settings_are_merged_with_defaults(self, make_task):
        task = make_task(timer_settings={"pomodoro_length": 50, "short_break_seconds": 30})

        assert task["timer_settings"]["pomodoro_length"] == 50
        assert task["timer_settings"]["short_break_seconds"] == 30
        assert task["timer_settings"]["long_break"] == 15

    def test_due_date_is_stored_as_utc(self, make_task):
        task = make_task(due_date="2026-10-20T11:00:00+02:00")
        assert task["due_date"].startswith("2026-10-20T09:00:00")

    def test_status_in_body_is_ignored(self, make_task):
        task = make_task(status="completed")
        assert task["status"] == "pending"

    def test_blank_title(self, client, auth):
        res = client.post("/api/tasks", json={"title": "   "}, headers=auth)
        assert res.status_code == 400
        assert res.json()["detail"] == "Title is required"

    def test_bad_priority(self, client, auth):
        res = client.post("/api/tasks", json={"title": "x", "priority": "urgent"}, headers=auth)
        assert res.status_code == 422

    def test_requires_auth(self, client):
        client.cookies.clear()
        assert client.post("/api/tasks", json={"title": "x"}).status_code == 401


class TestReadTasks:
    def test_list_newest_first(self, client, auth, make_task):
        first = make_task(title="first")
        second = make_task(title="second")

        ids = [t["id"] for t in client.get("/api/tasks", headers=auth).json()]
        assert ids == [second["id"], first["id"]]

    def test_only_own_tasks_are_listed(self, client, auth, make_user, make_task):
        mine = make_task()
        other = make_user(name="Eve", email="eve@example.com")
        make_task(headers={"Authorization": f"Bearer {other['token']}"}, title="hers")

        ids = [t["id"] for t in client.get("/api/tasks", headers=auth).json()]
        assert ids == [mine["id"]]

    def test_get_single(self, client, auth, make_task):
        task = make_task()
        res = client.get(f"/api/tasks/{task['id']}", headers=auth)
        assert res.status_code == 200
        assert res.json()["id"] == task["id"]

    def test_other_users_task_is_not_found(self, client, make_user, make_task):
        task = make_task()
        eve = make_user(name="Eve", email="eve@example.com")

        res = client.get(f"/api/tasks/{task['id']}", headers={"Authorization": f"Bearer {eve['token']}"})

        assert res.status_code == 404
        assert res.json()["detail"] == "Task not found"


class TestListFilters:
    def _seed(self, make_task):
        return {
            "low": make_task(title="Buy milk", priority="low"),
            "high": make_task(title="Ship release", priority="high", due_date="2026-11-01T00:00:00"),
            "medium": make_task(title="Review PR", priority="medium", due_date="2026-10-25T00:00:00"),
        }

    def _titles(self, client, auth, **params):
        res = client.get("/api/tasks", params=params, headers=auth)
        assert res.status_code == 200
        return [t["title"] for t in res.json()]

    def test_priority_filter(self, client, auth, make_task):
        self._seed(make_task)
        assert self._titles(client, auth, priority="high") == ["Ship release"]
        assert len(self._titles(client, auth, priority="all")) == 3

    def test_status_filter(self, client, auth, make_task):
        seeded = self._seed(make_task)
        client.patch(f"/api/tasks/{seeded['low']['id']}", json={"status": "completed"}, headers=auth)

        assert self._titles(client, auth, status="completed") == ["Buy milk"]
        assert set(self._titles(client, auth, status="pending")) == {"Ship release", "Review PR"}

    def test_search_is_case_insensitive_on_title(self, client, auth, make_task):
        self._seed(make_task)
        assert self._titles(client, auth, search="REVIEW") == ["Review PR"]

    def test_sort_by_priority(self, client, auth, make_task):
        self._seed(make_task)
        assert self._titles(client, auth, sort_by="priority") == ["Ship release", "Review PR", "Buy milk"]

    def test_sort_by_due_date_puts_undated_last(self, client, auth, make_task):
        self._seed(make_task)
        assert self._titles(client, auth, sort_by="due_date") == ["Review PR", "Ship release", "Buy milk"]

    def test_unknown_sort_key(self, client, auth):
        res = client.get("/api/tasks", params={"sort_by": "title"}, headers=auth)
        assert res.status_code == 400

    def test_unknown_priority(self, client, auth):
        res = client.get("/api/tasks", params={"priority": "urgent"}, headers=auth)
        assert res.status_code == 400


# ─────────────────────────────────────────────────────────────────────────────
# Update / delete
# ─────────────────────────────────────────────────────────────────────────────


class TestUpdateTask:
    def test_put_returns_task_and_success(self, client, auth, make_task):
        task = make_task()

        res = client.put(f"/api/tasks/{task['id']}", json={"title": "Renamed", "priority": "high"}, headers=auth)

        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert body["task"]["title"] == "Renamed"
        assert body["task"]["priority"] == "high"
        assert body["task"]["description"] == ""

    def test_patch_only_touches_given_fields(self, client, auth, make_task):
        task = make_task(description="keep me", priority="low")

        res = client.patch(f"/api/tasks/{task['id']}", json={"status": "completed"}, headers=auth)

        updated = res.json()["task"]
        assert updated["status"] == "completed"
        assert updated["description"] == "keep me"
        assert updated["priority"] == "low"

    def test_null_due_date_clears_it(self, client, auth, make_task):
        task = make_task(due_date="2026-10-25T00:00:00")

        res = client.patch(f"/api/tasks/{task['id']}", json={"due_date": None}, headers=auth)

        assert res.json()["task"]["due_date"] is None

    def test_timer_settings_update(self, client, auth, make_task):
        task = make_task()

        res = client.patch(
            f"/api/tasks/{task['id']}", json={"timer_settings": {"long_break": 20}}, headers=auth
        )

        ts = res.json()["task"]["timer_settings"]
        assert ts["long_break"] == 20
        assert ts["pomodoro_length"] == 25

    def test_rules_are_replaced(self, client, auth, make_task):
        task = make_task(automation_rules=[{"condition": "on_completion", "action": "notify_team"}])

        res = client.patch(
            f"/api/tasks/{task['id']}",
            json={"automation_rules": [{"condition": "on_due_date", "action": "create_followup"}]},
            headers=auth,
        )

        rules = res.json()["task"]["automation_rules"]
        assert [(r["condition"], r["action"]) for r in rules] == [("on_due_date", "create_followup")]

    def test_blank_title_is_rejected(self, client, auth, make_task):
        task = make_task()

        res = client.patch(f"/api/tasks/{task['id']}", json={"title": "   "}, headers=auth)

        assert res.status_code == 400
        assert res.json()["detail"] == "Title is required"
        assert client.get(f"/api/tasks/{task['id']}", headers=auth).json()["title"] == "Write report"

    def test_title_is_trimmed(self, client, auth, make_task):
        task = make_task()
        res = client.put(f"/api/tasks/{task['id']}", json={"title": "  Tidy  "}, headers=auth)
        assert res.json()["task"]["title"] == "Tidy"

    def test_invalid_status(self, client, auth, make_task):
        task = make_task()
        res = client.patch(f"/api/tasks/{task['id']}", json={"status": "archived"}, headers=auth)
        assert res.status_code == 422

    def test_update_missing_task(self, client, auth):
        res = client.put("/api/tasks/999", json={"title": "x"}, headers=auth)
        assert res.status_code == 404


class TestDeleteTask:
    def test_delete(self, client, auth, make_task):
        task = make_task(automation_rules=[{"condition": "on_completion", "action": "notify_team"}])

        res = client.delete(f"/api/tasks/{task['id']}", headers=auth)

        assert res.status_code == 200
        assert res.json() == {"success": True}
        assert client.get(f"/api/tasks/{task['id']}", headers=auth).status_code == 404

    def test_delete_other_users_task(self, client, make_user, make_task):
        task = make_task()
        eve = make_user(name="Eve", email="eve@example.com")

        res = client.delete(f"/api/tasks/{task['id']}", headers={"Authorization": f"Bearer {eve['token']}"})

        assert res.status_code == 404


# ─────────────────────────────────────────────────────────────────────────────
# Time tracking and timer
# ─────────────────────────────────────────────────────────────────────────────


class TestTimeTracking:
    def test_minutes_accumulate(self, client, auth, make_task):
        task = make_task()

        client.post(f"/api/tasks/{task['id']}/time", json={"minutes": 25}, headers=auth)
        res = client.post(f"/api/tasks/{task['id']}/time", json={"minutes": 25}, headers=auth)

        assert res.status_code == 200
        assert res.json()["time_spent"] == 50

    def test_minutes_must_be_positive(self, client, auth, make_task):
        task = make_task()
        res = client.post(f"/api/tasks/{task['id']}/time", json={"minutes": 0}, headers=auth)
        assert res.status_code == 422


class TestTimer:
    def test_work_is_default(self, client, auth, make_task):
        task = make_task()

        res = client.get(f"/api/tasks/{task['id']}/timer", headers=auth)

        assert res.json() == {"task_id": task["id"], "type": "work", "seconds": 25 * 60}

    def test_breaks_include_seconds(self, client, auth, make_task):
        task = make_task(timer_settings={"short_break_seconds": 30, "long_break": 10, "long_break_seconds": 15})

        short = client.get(f"/api/tasks/{task['id']}/timer", params={"type": "shortBreak"}, headers=auth)
        long = client.get(f"/api/tasks/{task['id']}/timer", params={"type": "longBreak"}, headers=auth)

        assert short.json()["seconds"] == 330
        assert long.json()["seconds"] == 615

    def test_unknown_timer_type(self, client, auth, make_task):
        task = make_task()
        res = client.get(f"/api/tasks/{task['id']}/timer", params={"type": "nap"}, headers=auth)
        assert res.status_code == 422
