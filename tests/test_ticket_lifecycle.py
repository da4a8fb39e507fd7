"""Tests for the ticket lifecycle and the task changes it drives."""

import pytest

from visiondesk.c1_ticket_models.ticket import Ticket
from visiondesk.c2_ticket_service.ticket_service import TicketService
from visiondesk.core.errors import InvalidStateTransition


def _ticket_payload(task_id, time_spent=2, **overrides):
    payload = {
        "taskId": task_id,
        "title": "Fix login form",
        "description": "Fixed the login form validation",
        "notes": "Validated every input on the form",
        "timeSpent": time_spent,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def team(make_user, make_project, make_task):
    admin = make_user("admin")
    moderator = make_user("moderator")
    developer = make_user("user")
    outsider_mod = make_user("moderator")
    project = make_project(moderator, members=[developer])
    task = make_task(project, developer, creator=moderator, status="in-progress")
    return {
        "admin": admin,
        "moderator": moderator,
        "developer": developer,
        "outsider_mod": outsider_mod,
        "project": project,
        "task": task,
    }


@pytest.fixture
def open_ticket(client, auth_headers, team):
    """A pending ticket raised by the developer for two hours of work."""
    response = client.post(
        "/api/tickets",
        json=_ticket_payload(team["task"].id),
        headers=auth_headers(team["developer"]),
    )
    assert response.status_code == 201
    return response.json()["data"]["ticket"]


class TestTicketCreation:
    """Raising a ticket resolves its task."""

    def test_create_resolves_task_and_adds_hours(self, client, db, team, open_ticket):
        assert open_ticket["status"] == "pending"
        assert open_ticket["resolution"] == "fixed"
        assert open_ticket["timeSpent"] == 2
        assert open_ticket["resolvedBy"]["id"] == team["developer"].id

        db.expire_all()
        task = team["task"]
        assert task.status == "resolved"
        assert task.actual_hours == 2.0
        assert task.completed_date is not None

    def test_cannot_ticket_resolved_task(self, client, auth_headers, team, open_ticket):
        response = client.post(
            "/api/tickets",
            json=_ticket_payload(team["task"].id),
            headers=auth_headers(team["developer"]),
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "already resolved" in body["message"]

    def test_unknown_task(self, client, auth_headers, team):
        response = client.post(
            "/api/tickets",
            json=_ticket_payload("task-missing"),
            headers=auth_headers(team["developer"]),
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Task not found"

    def test_negative_time_spent_rejected(self, client, auth_headers, team):
        response = client.post(
            "/api/tickets",
            json=_ticket_payload(team["task"].id, time_spent=-1),
            headers=auth_headers(team["developer"]),
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "timeSpent"

    def test_outsider_cannot_ticket_task(self, client, auth_headers, make_user, team):
        stranger = make_user("user")

        response = client.post(
            "/api/tickets",
            json=_ticket_payload(team["task"].id),
            headers=auth_headers(stranger),
        )

        assert response.status_code == 403


class TestTicketVerification:
    """Verification closes or reopens the task."""

    def test_full_lifecycle(self, client, db, auth_headers, team, open_ticket):
        admin_headers = auth_headers(team["admin"])

        verified = client.put(
            f"/api/tickets/{open_ticket['id']}/verify",
            json={"status": "verified", "verificationNotes": "Looks good"},
            headers=admin_headers,
        )
        assert verified.status_code == 200
        assert verified.json()["message"] == "Ticket verified successfully"
        ticket = verified.json()["data"]["ticket"]
        assert ticket["status"] == "verified"
        assert ticket["verifiedBy"]["id"] == team["admin"].id
        assert ticket["verifiedAt"] is not None

        db.expire_all()
        assert team["task"].status == "closed"

        closed = client.put(
            f"/api/tickets/{open_ticket['id']}/close",
            json={"notes": "Shipped in release 2"},
            headers=admin_headers,
        )
        assert closed.status_code == 200
        ticket = closed.json()["data"]["ticket"]
        assert ticket["status"] == "closed"
        assert ticket["closedAt"] is not None
        assert ticket["verificationNotes"] == "Looks good\n\nClosure Notes: Shipped in release 2"

    def test_reject_reopens_task_and_keeps_hours(self, client, db, auth_headers, team, open_ticket):
        response = client.put(
            f"/api/tickets/{open_ticket['id']}/verify",
            json={"status": "rejected", "verificationNotes": "Still broken on mobile"},
            headers=auth_headers(team["moderator"]),
        )

        assert response.status_code == 200
        assert response.json()["data"]["ticket"]["status"] == "rejected"
        db.expire_all()
        assert team["task"].status == "in-progress"
        assert team["task"].completed_date is None
        assert team["task"].actual_hours == 2.0

    def test_verify_requires_pending(self, client, auth_headers, team, open_ticket):
        headers = auth_headers(team["admin"])
        client.put(f"/api/tickets/{open_ticket['id']}/verify", json={"status": "verified"}, headers=headers)

        again = client.put(f"/api/tickets/{open_ticket['id']}/verify", json={"status": "rejected"}, headers=headers)

        assert again.status_code == 400
        assert "pending" in again.json()["message"]

    def test_invalid_verify_status(self, client, auth_headers, team, open_ticket):
        response = client.put(
            f"/api/tickets/{open_ticket['id']}/verify",
            json={"status": "approved"},
            headers=auth_headers(team["admin"]),
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "status"

    def test_regular_user_cannot_verify(self, client, auth_headers, team, open_ticket):
        response = client.put(
            f"/api/tickets/{open_ticket['id']}/verify",
            json={"status": "verified"},
            headers=auth_headers(team["developer"]),
        )

        assert response.status_code == 403

    def test_close_requires_verified(self, client, auth_headers, team, open_ticket):
        response = client.put(
            f"/api/tickets/{open_ticket['id']}/close",
            json={},
            headers=auth_headers(team["admin"]),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Only verified tickets can be closed"

    def test_unrelated_moderator_follows_verify_scope(self, client, auth_headers, settings, team, open_ticket):
        url = f"/api/tickets/{open_ticket['id']}/verify"
        headers = auth_headers(team["outsider_mod"])

        settings.auth.moderator_verify_scope = "project"
        denied = client.put(url, json={"status": "verified"}, headers=headers)
        assert denied.status_code == 403

        settings.auth.moderator_verify_scope = "global"
        allowed = client.put(url, json={"status": "verified"}, headers=headers)
        assert allowed.status_code == 200


class TestTicketEditing:
    """Updates and withdrawals of tickets."""

    def test_update_time_spent_moves_task_hours(self, client, db, auth_headers, team, open_ticket):
        response = client.put(
            f"/api/tickets/{open_ticket['id']}",
            json={"timeSpent": 5},
            headers=auth_headers(team["developer"]),
        )

        assert response.status_code == 200
        assert response.json()["data"]["ticket"]["timeSpent"] == 5
        db.expire_all()
        assert team["task"].actual_hours == 5.0

    def test_update_only_pending(self, client, auth_headers, team, open_ticket):
        client.put(
            f"/api/tickets/{open_ticket['id']}/verify",
            json={"status": "verified"},
            headers=auth_headers(team["admin"]),
        )

        response = client.put(
            f"/api/tickets/{open_ticket['id']}",
            json={"title": "Changed title"},
            headers=auth_headers(team["developer"]),
        )

        assert response.status_code == 400

    def test_delete_reopens_task_and_subtracts_hours(self, client, db, auth_headers, team, open_ticket):
        response = client.delete(f"/api/tickets/{open_ticket['id']}", headers=auth_headers(team["developer"]))

        assert response.status_code == 200
        assert response.json()["data"] is None
        db.expire_all()
        assert db.query(Ticket).filter_by(id=open_ticket["id"]).first() is None
        assert team["task"].status == "in-progress"
        assert team["task"].actual_hours == 0.0

    def test_deleting_rejected_ticket_keeps_newer_pending_ticket(self, client, db, auth_headers, team, open_ticket):
        developer_headers = auth_headers(team["developer"])
        client.put(
            f"/api/tickets/{open_ticket['id']}/verify",
            json={"status": "rejected", "verificationNotes": "Still broken on mobile"},
            headers=auth_headers(team["moderator"]),
        )
        retry = client.post("/api/tickets", json=_ticket_payload(team["task"].id, time_spent=1), headers=developer_headers)
        assert retry.status_code == 201

        response = client.delete(f"/api/tickets/{open_ticket['id']}", headers=developer_headers)

        assert response.status_code == 200
        db.expire_all()
        assert team["task"].status == "resolved"
        assert team["task"].actual_hours == 1.0
        duplicate = client.post("/api/tickets", json=_ticket_payload(team["task"].id), headers=developer_headers)
        assert duplicate.status_code == 400
        assert db.query(Ticket).filter_by(task_id=team["task"].id, status="pending").count() == 1

    def test_cannot_delete_verified_ticket(self, client, auth_headers, team, open_ticket):
        client.put(
            f"/api/tickets/{open_ticket['id']}/verify",
            json={"status": "verified"},
            headers=auth_headers(team["admin"]),
        )

        response = client.delete(f"/api/tickets/{open_ticket['id']}", headers=auth_headers(team["admin"]))

        assert response.status_code == 400


class TestTicketQueries:
    """Listing and statistics are narrowed by role."""

    def test_user_lists_own_tickets(self, client, auth_headers, make_user, team, open_ticket):
        mine = client.get("/api/tickets", headers=auth_headers(team["developer"]))
        other = client.get("/api/tickets", headers=auth_headers(make_user("user")))

        assert [t["id"] for t in mine.json()["data"]["tickets"]] == [open_ticket["id"]]
        assert other.json()["data"]["tickets"] == []
        assert mine.json()["data"]["pagination"]["totalItems"] == 1

    def test_stats(self, client, auth_headers, team, open_ticket):
        response = client.get("/api/tickets/stats", headers=auth_headers(team["admin"]))

        stats = response.json()["data"]
        assert stats["totalTickets"] == 1
        assert stats["pendingTickets"] == 1
        assert stats["totalTimeSpent"] == 2.0
        assert stats["resolutionBreakdown"]["fixed"] == 1
        assert stats["resolutionBreakdown"]["duplicate"] == 0

    def test_get_unknown_ticket(self, client, auth_headers, team):
        response = client.get("/api/tickets/ticket-missing", headers=auth_headers(team["admin"]))

        assert response.status_code == 404
        assert response.json()["message"] == "Ticket not found"


class TestTicketServiceDirect:
    """Service calls used without the HTTP layer."""

    def test_create_rolls_back_with_session(self, db, team):
        ticket = TicketService.create_ticket(
            db,
            team["developer"],
            {
                "task_id": team["task"].id,
                "title": "Fix login form",
                "description": "Fixed the login form validation",
                "notes": "Validated every input on the form",
                "time_spent": 1.5,
            },
        )
        ticket_id = ticket.id
        assert team["task"].status == "resolved"

        db.rollback()

        assert db.query(Ticket).filter_by(id=ticket_id).first() is None
        assert team["task"].status == "in-progress"
        assert team["task"].actual_hours == 0.0

    def test_close_pending_ticket_rejected(self, db, team):
        ticket = TicketService.create_ticket(
            db,
            team["developer"],
            {
                "task_id": team["task"].id,
                "title": "Fix login form",
                "description": "Fixed the login form validation",
                "notes": "Validated every input on the form",
                "time_spent": 1,
            },
        )

        with pytest.raises(InvalidStateTransition):
            TicketService.close_ticket(db, team["admin"], ticket.id)
