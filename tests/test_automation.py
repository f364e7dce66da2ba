"""
Automation: one-off actions over the API, stored rules and the due-date sweep.
"""

from datetime import datetime, timedelta

import pytest

from automation import AutomationError, run_action, run_rules
from database import AutomationRule, Task, User, utcnow


def _automate(client, auth, task_id, automation_type):
    return client.post(
        "/api/tasks/automation",
        json={"task_id": task_id, "automation_type": automation_type},
        headers=auth,
    )


# ─────────────────────────────────────────────────────────────────────────────
# One-off actions
# ─────────────────────────────────────────────────────────────────────────────


class TestAutomationEndpoint:
    def test_create_followup(self, client, auth, make_task):
        task = make_task(title="Draft", description="first pass", priority="high")
        before = utcnow()

        res = _automate(client, auth, task["id"], "create_followup")

        assert res.status_code == 200
        followup = res.json()
        assert followup["id"] != task["id"]
        assert followup["title"] == "Follow-up: Draft"
        assert followup["description"] == "Follow-up task for: first pass"
        assert followup["priority"] == "high"
        assert followup["status"] == "pending"
        due = datetime.fromisoformat(followup["due_date"])
        assert before + timedelta(hours=23, minutes=59) <= due <= utcnow() + timedelta(hours=24)

    def test_notify_team(self, client, auth, make_task):
        task = make_task()

        res = _automate(client, auth, task["id"], "notify_team")

        assert res.status_code == 200
        assert res.json() == {"message": "Team notified"}

    def test_mark_complete(self, client, auth, make_task):
        task = make_task()

        res = _automate(client, auth, task["id"], "mark_complete")

        assert res.json()["status"] == "completed"
        assert client.get(f"/api/tasks/{task['id']}", headers=auth).json()["status"] == "completed"

    def test_mark_complete_fires_completion_rules(self, client, auth, make_task):
        task = make_task(automation_rules=[{"condition": "on_completion", "action": "create_followup"}])

        _automate(client, auth, task["id"], "mark_complete")

        titles = [t["title"] for t in client.get("/api/tasks", headers=auth).json()]
        assert "Follow-up: Write report" in titles

    def test_invalid_type(self, client, auth, make_task):
        task = make_task()

        res = _automate(client, auth, task["id"], "send_fax")

        assert res.status_code == 400
        assert res.json()["detail"] == "Invalid automation type"

    def test_unknown_task(self, client, auth):
        assert _automate(client, auth, 999, "notify_team").status_code == 404


# ─────────────────────────────────────────────────────────────────────────────
# Stored rules
# ─────────────────────────────────────────────────────────────────────────────


class TestRules:
    def test_on_creation_rule_runs(self, make_task):
        task = make_task(automation_rules=[{"condition": "on_creation", "action": "mark_complete"}])
        assert task["status"] == "completed"

    def test_completion_rule_with_title_parameter(self, client, auth, make_task):
        task = make_task(
            automation_rules=[
                {"condition": "on_completion", "action": "create_followup", "parameters": {"title": "Send invoice"}}
            ]
        )

        client.patch(f"/api/tasks/{task['id']}", json={"status": "completed"}, headers=auth)

        tasks = client.get("/api/tasks", headers=auth).json()
        followup = next(t for t in tasks if t["id"] != task["id"])
        assert followup["title"] == "Send invoice"
        assert followup["automation_rules"] == []

    def test_rules_do_not_refire_on_completed_task(self, client, auth, make_task):
        task = make_task(automation_rules=[{"condition": "on_completion", "action": "create_followup"}])

        client.patch(f"/api/tasks/{task['id']}", json={"status": "completed"}, headers=auth)
        client.patch(f"/api/tasks/{task['id']}", json={"status": "completed", "title": "again"}, headers=auth)

        assert len(client.get("/api/tasks", headers=auth).json()) == 2

    def test_creation_completion_does_not_cascade(self, client, auth, make_task):
        make_task(
            automation_rules=[
                {"condition": "on_creation", "action": "mark_complete"},
                {"condition": "on_completion", "action": "create_followup"},
            ]
        )
        assert len(client.get("/api/tasks", headers=auth).json()) == 1

    @pytest.mark.parametrize("delay", ["soon", "1e9", "inf", "nan", "-1"])
    def test_bad_delay_is_rejected_and_nothing_saved(self, client, auth, delay):
        res = client.post(
            "/api/tasks",
            json={
                "title": "x",
                "automation_rules": [
                    {"condition": "on_creation", "action": "create_followup", "parameters": {"delay_hours": delay}}
                ],
            },
            headers=auth,
        )

        assert res.status_code == 422
        assert client.get("/api/tasks", headers=auth).json() == []

    def test_failing_completion_rule_rolls_back(self, client, auth, db, make_task):
        task = make_task()
        # written straight to the table, skipping input validation
        db.add(AutomationRule(task_id=task["id"], position=0, condition="on_completion",
                              action="create_followup", parameters={"delay_hours": "soon"}))
        db.commit()

        res = client.patch(f"/api/tasks/{task['id']}", json={"status": "completed", "title": "Renamed"}, headers=auth)

        assert res.status_code == 400
        stored = client.get(f"/api/tasks/{task['id']}", headers=auth).json()
        assert stored["status"] == "pending"
        assert stored["title"] == "Write report"
        assert len(client.get("/api/tasks", headers=auth).json()) == 1

    def test_failing_rule_after_mark_complete_rolls_back(self, client, auth, db, make_task):
        task = make_task()
        db.add(AutomationRule(task_id=task["id"], position=0, condition="on_completion",
                              action="create_followup", parameters={"delay_hours": "1e9"}))
        db.commit()

        res = _automate(client, auth, task["id"], "mark_complete")

        assert res.status_code == 400
        assert client.get(f"/api/tasks/{task['id']}", headers=auth).json()["status"] == "pending"


class TestDueSweep:
    def test_rule_fires_once_per_due_date(self, client, auth, make_task):
        task = make_task(
            title="late",
            due_date="2020-01-01T00:00:00",
            automation_rules=[{"condition": "on_due_date", "action": "create_followup"}],
        )

        first = client.post("/api/tasks/automation/due", headers=auth).json()
        second = client.post("/api/tasks/automation/due", headers=auth).json()

        assert first == {"task_ids": [task["id"]]}
        assert second == {"task_ids": []}
        assert len(client.get("/api/tasks", headers=auth).json()) == 2

    def test_new_due_date_rearms_rule(self, client, auth, make_task):
        task = make_task(
            title="late",
            due_date="2020-01-01T00:00:00",
            automation_rules=[{"condition": "on_due_date", "action": "notify_team"}],
        )
        client.post("/api/tasks/automation/due", headers=auth)
        client.patch(f"/api/tasks/{task['id']}", json={"due_date": "2021-01-01T00:00:00"}, headers=auth)

        res = client.post("/api/tasks/automation/due", headers=auth)

        assert res.json() == {"task_ids": [task["id"]]}

    def test_only_overdue_pending_tasks_with_rules(self, client, auth, make_task):
        rule = [{"condition": "on_due_date", "action": "notify_team"}]
        overdue = make_task(title="late", due_date="2020-01-01T00:00:00", automation_rules=rule)
        make_task(title="future", due_date="2999-01-01T00:00:00", automation_rules=rule)
        make_task(title="no rule", due_date="2020-01-01T00:00:00")
        done = make_task(title="done", due_date="2020-01-01T00:00:00", automation_rules=rule)
        client.patch(f"/api/tasks/{done['id']}", json={"status": "completed"}, headers=auth)

        res = client.post("/api/tasks/automation/due", headers=auth)

        assert res.status_code == 200
        assert res.json() == {"task_ids": [overdue["id"]]}

    def test_due_followup(self, client, auth, make_task):
        task = make_task(
            title="Renew domain",
            due_date="2020-01-01T00:00:00",
            automation_rules=[{"condition": "on_due_date", "action": "create_followup", "parameters": {"delay_hours": "2"}}],
        )

        client.post("/api/tasks/automation/due", headers=auth)

        tasks = client.get("/api/tasks", headers=auth).json()
        followup = next(t for t in tasks if t["id"] != task["id"])
        assert followup["title"] == "Follow-up: Renew domain"


# ─────────────────────────────────────────────────────────────────────────────
# Action runner
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def stored_task(db):
    owner = User(name="Owner", email="owner@example.com", password_hash="x")
    db.add(owner)
    db.commit()
    task = Task(user_id=owner.id, title="Plan sprint", description="", priority="low")
    db.add(task)
    db.commit()
    return task


class TestRunAction:
    def test_unknown_action(self, db, stored_task):
        with pytest.raises(AutomationError, match="Invalid automation type"):
            run_action(db, stored_task, "explode")

    def test_followup_delay_from_parameters(self, db, stored_task):
        now = datetime(2026, 10, 19, 8, 0)

        followup = run_action(db, stored_task, "create_followup", {"delay_hours": "1.5"}, now=now)

        assert followup.due_date == datetime(2026, 10, 19, 9, 30)
        assert followup.priority == "low"

    def test_non_numeric_delay(self, db, stored_task):
        with pytest.raises(AutomationError):
            run_action(db, stored_task, "create_followup", {"delay_hours": "tomorrow"})

    @pytest.mark.parametrize("delay", ["1e9", "inf", "-inf", "nan", "-0.5", "8761"])
    def test_out_of_range_delay(self, db, stored_task, delay):
        with pytest.raises(AutomationError):
            run_action(db, stored_task, "create_followup", {"delay_hours": delay})

    def test_zero_and_max_delay_are_allowed(self, db, stored_task):
        now = datetime(2026, 10, 19, 8, 0)

        same_time = run_action(db, stored_task, "create_followup", {"delay_hours": "0"}, now=now)
        year_later = run_action(db, stored_task, "create_followup", {"delay_hours": "8760"}, now=now)

        assert same_time.due_date == now
        assert year_later.due_date == now + timedelta(days=365)

    def test_run_rules_in_order(self, db, stored_task):
        stored_task.automation_rules = [
            AutomationRule(position=0, condition="on_completion", action="notify_team", parameters={}),
            AutomationRule(position=1, condition="on_due_date", action="mark_complete", parameters={}),
            AutomationRule(position=2, condition="on_completion", action="create_followup", parameters={}),
        ]
        db.commit()

        results = run_rules(db, stored_task, "on_completion")

        assert results[0] == "Team notified"
        assert results[1].title == "Follow-up: Plan sprint"
        assert stored_task.status == "pending"
