"""Tests for user administration."""

import pytest
from pydantic import SecretStr

from visiondesk.c1_user_models.user import User
from visiondesk.c2_auth_service.auth_service import AuthService
from visiondesk.c2_user_service.user_service import UserService
from visiondesk.core.config import AuthConfig
from visiondesk.core.errors import AuthenticationError, ValidationError

TEST_PASSWORD = "Password123!"


@pytest.fixture
def admin(make_user):
    return make_user("admin", name="Ada Admin")


@pytest.fixture
def member(make_user):
    return make_user("user", name="Uma User")


class TestUserListing:
    """Listing, searching and statistics."""

    def test_search_and_filters(self, client, auth_headers, make_user, admin, member):
        make_user("user", name="Inactive Ian", is_active=False)
        headers = auth_headers(member)

        by_name = client.get("/api/users", params={"search": "uma"}, headers=headers)
        inactive = client.get("/api/users", params={"isActive": "false"}, headers=headers)
        admins = client.get("/api/users", params={"role": "admin"}, headers=headers)

        assert [u["name"] for u in by_name.json()["data"]["users"]] == ["Uma User"]
        assert [u["name"] for u in inactive.json()["data"]["users"]] == ["Inactive Ian"]
        assert [u["id"] for u in admins.json()["data"]["users"]] == [admin.id]

    def test_password_hash_never_serialized(self, client, auth_headers, admin, member):
        response = client.get(f"/api/users/{member.id}", headers=auth_headers(admin))

        user = response.json()["data"]["user"]
        assert "password" not in user
        assert "passwordHash" not in user
        assert user["isActive"] is True

    def test_stats_admin_only(self, client, auth_headers, make_user, admin, member):
        make_user("moderator")
        make_user("user", is_active=False)

        denied = client.get("/api/users/stats", headers=auth_headers(member))
        allowed = client.get("/api/users/stats", headers=auth_headers(admin))

        assert denied.status_code == 403
        stats = allowed.json()["data"]
        assert stats["totalUsers"] == 4
        assert stats["activeUsers"] == 3
        assert stats["inactiveUsers"] == 1
        assert stats["byRole"] == {"admin": 1, "moderator": 1, "user": 2}
        assert stats["recentUsers"] == 4

    def test_users_cannot_view_each_other(self, client, auth_headers, make_user, member):
        other = make_user("user")

        response = client.get(f"/api/users/{other.id}", headers=auth_headers(member))

        assert response.status_code == 403


class TestUserAdministration:
    """Creating, updating and deactivating accounts."""

    def test_admin_creates_moderator(self, client, auth_headers, admin):
        response = client.post(
            "/api/users",
            json={"name": "Max Mod", "email": "Max@Example.com", "password": "secret-pass", "role": "moderator"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        user = response.json()["data"]["user"]
        assert user["email"] == "max@example.com"
        assert user["role"] == "moderator"

    def test_invalid_email_rejected(self, client, auth_headers, admin):
        response = client.post(
            "/api/users",
            json={"name": "Max Mod", "email": "not-an-email", "password": "secret-pass"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "email"

    def test_user_updates_own_profile(self, client, auth_headers, member):
        response = client.put(
            f"/api/users/{member.id}",
            json={"name": "Uma Updated"},
            headers=auth_headers(member),
        )

        assert response.status_code == 200
        assert response.json()["data"]["user"]["name"] == "Uma Updated"

    def test_user_cannot_change_own_role(self, client, auth_headers, member):
        response = client.put(
            f"/api/users/{member.id}",
            json={"role": "admin"},
            headers=auth_headers(member),
        )

        assert response.status_code == 403

    def test_user_cannot_edit_others(self, client, auth_headers, admin, member):
        response = client.put(
            f"/api/users/{admin.id}",
            json={"name": "Hijacked"},
            headers=auth_headers(member),
        )

        assert response.status_code == 403

    def test_assign_role(self, client, db, auth_headers, admin, member):
        response = client.put(
            f"/api/users/{member.id}/role",
            json={"role": "moderator"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        db.expire_all()
        assert member.role == "moderator"

    def test_admin_cannot_change_own_role(self, db, admin):
        with pytest.raises(ValidationError) as exc_info:
            UserService.assign_role(db, admin, admin.id, "user")
        assert exc_info.value.message == "You cannot change your own role"

    def test_admin_cannot_demote_self_through_update(self, client, db, auth_headers, admin):
        response = client.put(
            f"/api/users/{admin.id}",
            json={"role": "user"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "You cannot change your own role"
        db.expire_all()
        assert admin.role == "admin"

    def test_admin_cannot_deactivate_self_through_update(self, client, db, auth_headers, admin):
        headers = auth_headers(admin)

        response = client.put(f"/api/users/{admin.id}", json={"isActive": False}, headers=headers)

        assert response.status_code == 400
        assert response.json()["message"] == "You cannot deactivate your own account"
        db.expire_all()
        assert admin.is_active is True
        assert client.get("/api/auth/verify", headers=headers).status_code == 200

    def test_admin_keeps_role_when_resubmitting_it(self, client, auth_headers, admin):
        response = client.put(
            f"/api/users/{admin.id}",
            json={"name": "Ada Renamed", "role": "admin", "isActive": True},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["data"]["user"]["name"] == "Ada Renamed"


class TestUserDeletion:
    """Deletion deactivates instead of removing rows."""

    def test_soft_delete(self, client, db, auth_headers, settings, admin, member):
        AuthService.issue_tokens(db, member, settings.auth)
        db.commit()

        response = client.delete(f"/api/users/{member.id}", headers=auth_headers(admin))

        assert response.status_code == 200
        db.expire_all()
        stored = db.query(User).filter_by(id=member.id).first()
        assert stored is not None
        assert stored.is_active is False
        assert all(token.revoked_at is not None for token in stored.refresh_tokens)

    def test_deactivated_user_cannot_login(self, client, auth_headers, admin, member):
        client.delete(f"/api/users/{member.id}", headers=auth_headers(admin))

        response = client.post("/api/auth/login", json={"email": member.email, "password": TEST_PASSWORD})

        assert response.status_code == 401
        assert response.json()["message"] == "Account is deactivated. Please contact an administrator"

    def test_deactivated_user_token_rejected(self, client, auth_headers, admin, member):
        headers = auth_headers(member)
        client.delete(f"/api/users/{member.id}", headers=auth_headers(admin))

        response = client.get("/api/auth/profile", headers=headers)

        assert response.status_code == 401

    def test_cannot_delete_self(self, client, auth_headers, admin):
        response = client.delete(f"/api/users/{admin.id}", headers=auth_headers(admin))

        assert response.status_code == 400
        assert response.json()["message"] == "You cannot delete your own account"

    def test_unknown_user(self, client, auth_headers, admin):
        response = client.delete("/api/users/user-missing", headers=auth_headers(admin))

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"


class TestInitialAdmin:
    """Seeding the first administrator."""

    def test_seeds_configured_admin(self, db):
        config = AuthConfig(
            initial_admin_email="Root@Example.com",
            initial_admin_password=SecretStr("root-password"),
            bcrypt_rounds=4,
        )

        created = UserService.ensure_initial_admin(db, config)
        db.commit()

        assert created.email == "root@example.com"
        assert created.role == "admin"
        assert UserService.ensure_initial_admin(db, config) is None

    def test_skipped_without_credentials(self, db):
        assert UserService.ensure_initial_admin(db, AuthConfig(initial_admin_email=None)) is None

    def test_seeded_admin_can_login(self, db):
        config = AuthConfig(
            initial_admin_email="root@example.com",
            initial_admin_password=SecretStr("root-password"),
            bcrypt_rounds=4,
        )
        UserService.ensure_initial_admin(db, config)

        user, tokens = AuthService.login(db, "root@example.com", "root-password", config)
        assert user.role == "admin"
        assert tokens["token_type"] == "bearer"

        with pytest.raises(AuthenticationError):
            AuthService.login(db, "root@example.com", "wrong-password", config)
