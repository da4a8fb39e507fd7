"""Tests for project management and team membership."""

import pytest

from visiondesk.c1_project_models.project import Project
from visiondesk.c1_task_models.task import Task
from visiondesk.c1_ticket_models.ticket import Ticket
from visiondesk.c2_project_service.project_service import ProjectService
from visiondesk.core.errors import AuthorizationError, ValidationError


@pytest.fixture
def people(make_user):
    return {
        "admin": make_user("admin"),
        "moderator": make_user("moderator"),
        "developer": make_user("user"),
        "designer": make_user("user"),
    }


class TestProjectCreation:
    """Creating projects through the API."""

    def test_moderator_creates_project_with_team(self, client, auth_headers, people):
        response = client.post(
            "/api/projects",
            json={
                "title": "Vision Board",
                "description": "Planning board for the vision team",
                "priority": "high",
                "teamMembers": [
                    {"user": people["developer"].id, "role": "lead"},
                    {"user": people["designer"].id, "role": "designer"},
                ],
            },
            headers=auth_headers(people["moderator"]),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["statusCode"] == 201
        project = body["data"]["project"]
        assert project["status"] == "active"
        assert project["progress"] == 0
        assert project["createdBy"]["id"] == people["moderator"].id
        roles = {m["user"]["id"]: m["role"] for m in project["teamMembers"]}
        assert roles == {people["developer"].id: "lead", people["designer"].id: "designer"}

    def test_regular_user_cannot_create(self, client, auth_headers, people):
        response = client.post(
            "/api/projects",
            json={"title": "Side project", "description": "Something on the side"},
            headers=auth_headers(people["developer"]),
        )

        assert response.status_code == 403
        assert response.json()["success"] is False

    def test_unknown_team_member(self, client, auth_headers, people):
        response = client.post(
            "/api/projects",
            json={
                "title": "Vision Board",
                "description": "Planning board for the vision team",
                "teamMembers": [{"user": "user-missing"}],
            },
            headers=auth_headers(people["moderator"]),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "One or more team members not found"

    def test_short_description_rejected(self, client, auth_headers, people):
        response = client.post(
            "/api/projects",
            json={"title": "Vision Board", "description": "short"},
            headers=auth_headers(people["moderator"]),
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "description"


class TestProjectVisibility:
    """Each role sees only what it should."""

    def test_listing_is_scoped(self, client, auth_headers, make_project, people):
        own = make_project(people["moderator"], members=[people["developer"]], title="Own project")
        make_project(people["admin"], title="Admin project")

        as_dev = client.get("/api/projects", headers=auth_headers(people["developer"]))
        as_admin = client.get("/api/projects", headers=auth_headers(people["admin"]))

        assert [p["id"] for p in as_dev.json()["data"]["projects"]] == [own.id]
        assert as_admin.json()["data"]["pagination"]["totalItems"] == 2

    def test_non_member_gets_403(self, client, auth_headers, make_project, people):
        project = make_project(people["moderator"])

        response = client.get(f"/api/projects/{project.id}", headers=auth_headers(people["designer"]))

        assert response.status_code == 403

    def test_unknown_project_gets_404(self, client, auth_headers, people):
        response = client.get("/api/projects/project-missing", headers=auth_headers(people["admin"]))

        assert response.status_code == 404
        assert response.json()["message"] == "Project not found"

    def test_user_projects_include_assigned_tasks(self, client, auth_headers, make_project, make_task, people):
        project = make_project(people["moderator"], members=[people["developer"], people["designer"]])
        mine = make_task(project, people["developer"], creator=people["moderator"])
        make_task(project, people["designer"], creator=people["moderator"])

        response = client.get("/api/projects/user", headers=auth_headers(people["developer"]))

        assert response.status_code == 200
        projects = response.json()["data"]["projects"]
        assert len(projects) == 1
        assert [t["id"] for t in projects[0]["tasks"]] == [mine.id]

    def test_user_projects_route_is_for_regular_users(self, client, auth_headers, people):
        response = client.get("/api/projects/user", headers=auth_headers(people["moderator"]))

        assert response.status_code == 403

    def test_stats(self, client, auth_headers, make_project, people):
        make_project(people["moderator"], progress=40)
        make_project(people["moderator"], status="completed", progress=100)

        response = client.get("/api/projects/stats", headers=auth_headers(people["moderator"]))

        stats = response.json()["data"]
        assert stats["totalProjects"] == 2
        assert stats["activeProjects"] == 1
        assert stats["completedProjects"] == 1
        assert stats["avgProgress"] == 70.0
        assert stats["byPriority"]["medium"] == 2


class TestProjectUpdates:
    """Updating project fields and status."""

    def test_progress_is_clamped(self, client, auth_headers, make_project, people):
        project = make_project(people["moderator"])

        response = client.put(
            f"/api/projects/{project.id}",
            json={"progress": 150},
            headers=auth_headers(people["moderator"]),
        )

        assert response.status_code == 200
        assert response.json()["data"]["project"]["progress"] == 100

    @pytest.mark.parametrize("raw_progress", ["NaN", "Infinity", "1e999"])
    def test_non_finite_progress_rejected(self, client, auth_headers, make_project, people, raw_progress):
        project = make_project(people["moderator"])
        headers = {**auth_headers(people["moderator"]), "Content-Type": "application/json"}

        response = client.put(
            f"/api/projects/{project.id}",
            content=f'{{"progress": {raw_progress}}}',
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "progress"

    def test_service_rejects_non_finite_progress(self, db, make_project, people):
        project = make_project(people["moderator"])

        with pytest.raises(ValidationError):
            ProjectService.update_project(db, people["moderator"], project.id, {"progress": float("nan")})
        with pytest.raises(ValidationError):
            ProjectService.update_project(db, people["moderator"], project.id, {"progress": float("inf")})

    def test_completion_sets_and_clears_completed_date(self, client, auth_headers, make_project, people):
        project = make_project(people["moderator"])
        headers = auth_headers(people["moderator"])

        completed = client.put(f"/api/projects/{project.id}", json={"status": "completed"}, headers=headers)
        data = completed.json()["data"]["project"]
        assert data["completedDate"] is not None
        assert data["progress"] == 100

        reopened = client.put(f"/api/projects/{project.id}", json={"status": "active"}, headers=headers)
        assert reopened.json()["data"]["project"]["completedDate"] is None

    def test_member_cannot_update(self, client, auth_headers, make_project, people):
        project = make_project(people["moderator"], members=[people["developer"]])

        response = client.put(
            f"/api/projects/{project.id}",
            json={"title": "Renamed"},
            headers=auth_headers(people["developer"]),
        )

        assert response.status_code == 403

    def test_replace_team_keeps_existing_members(self, db, make_project, people):
        project = make_project(people["moderator"], members=[(people["developer"], "developer")])
        original = project.team_members[0]

        ProjectService.update_project(
            db,
            people["moderator"],
            project.id,
            {"team_members": [
                {"user": people["developer"].id, "role": "lead"},
                {"user": people["designer"].id, "role": "designer"},
            ]},
        )
        db.commit()

        assert project.member_role(people["developer"].id) == "lead"
        assert project.member_role(people["designer"].id) == "designer"
        assert project.team_members[0].id == original.id


class TestProjectDeletion:
    """Deletion is blocked by active work and cascades otherwise."""

    def test_active_tasks_block_deletion(self, client, auth_headers, make_project, make_task, people):
        project = make_project(people["moderator"], members=[people["developer"]])
        make_task(project, people["developer"], creator=people["moderator"], status="in-progress")

        response = client.delete(f"/api/projects/{project.id}", headers=auth_headers(people["moderator"]))

        assert response.status_code == 400
        assert "active task" in response.json()["message"]

    def test_delete_cascades_to_tasks_and_tickets(self, client, db, auth_headers, make_project, make_task, people):
        project = make_project(people["moderator"], members=[people["developer"]])
        task = make_task(project, people["developer"], creator=people["moderator"], status="closed")
        db.add(Ticket(
            id="ticket-cascade",
            task_id=task.id,
            title="Done",
            description="All done here",
            resolved_by=people["developer"].id,
            resolution="fixed",
            status="verified",
            notes="Finished all the work",
            time_spent=1.0,
        ))
        db.commit()
        project_id, task_id = project.id, task.id

        response = client.delete(f"/api/projects/{project_id}", headers=auth_headers(people["moderator"]))

        assert response.status_code == 200
        db.expire_all()
        assert db.query(Project).filter_by(id=project_id).first() is None
        assert db.query(Task).filter_by(id=task_id).first() is None
        assert db.query(Ticket).filter_by(id="ticket-cascade").first() is None

    def test_only_creator_or_admin_deletes(self, db, make_project, people):
        project = make_project(people["moderator"], members=[people["developer"]])

        with pytest.raises(AuthorizationError):
            ProjectService.delete_project(db, people["developer"], project.id)


class TestTeamMembers:
    """Adding and removing team members."""

    def test_add_and_remove_member(self, client, auth_headers, make_project, people):
        project = make_project(people["moderator"])
        headers = auth_headers(people["moderator"])

        added = client.put(
            f"/api/projects/{project.id}/team-members",
            json={"userId": people["developer"].id, "role": "tester"},
            headers=headers,
        )
        assert added.status_code == 200
        members = added.json()["data"]["project"]["teamMembers"]
        assert [(m["user"]["id"], m["role"]) for m in members] == [(people["developer"].id, "tester")]

        removed = client.delete(f"/api/projects/{project.id}/team-members/{people['developer'].id}", headers=headers)
        assert removed.status_code == 200
        assert removed.json()["data"]["project"]["teamMembers"] == []

    def test_duplicate_member_rejected(self, db, make_project, people):
        project = make_project(people["moderator"], members=[people["developer"]])

        with pytest.raises(ValidationError) as exc_info:
            ProjectService.add_team_member(db, people["moderator"], project.id, people["developer"].id)
        assert exc_info.value.message == "User is already a team member"

    def test_unknown_user(self, client, auth_headers, make_project, people):
        project = make_project(people["moderator"])

        response = client.put(
            f"/api/projects/{project.id}/team-members",
            json={"userId": "user-missing"},
            headers=auth_headers(people["moderator"]),
        )

        assert response.status_code == 404

    def test_remove_non_member(self, client, auth_headers, make_project, people):
        project = make_project(people["moderator"])

        response = client.delete(
            f"/api/projects/{project.id}/team-members/{people['designer'].id}",
            headers=auth_headers(people["moderator"]),
        )

        assert response.status_code == 404
