"""
Admin User Management Tests
===========================
"""

from lawdir.db.session import get_db_session
from lawdir.db.models import User, UserRole, AuditLog


def _update_role(client, caller, user_id, role):
    return client.post(
        "/api/admin/users/update-role",
        json={"userId": user_id, "role": role},
        headers=caller["headers"],
    )


class TestUserListing:

    def test_list_and_filter_users(self, client, admin, make_user):
        make_user("LAWYER", email="jane@example.com", name="Jane Doe")
        make_user("FIRM_OWNER", email="owner@example.com", name="Olive Owner")

        users = client.get("/api/admin/users", headers=admin["headers"]).json()["users"]
        assert len(users) == 3

        users = client.get("/api/admin/users?q=jane", headers=admin["headers"]).json()["users"]
        assert [u["email"] for u in users] == ["jane@example.com"]

        users = client.get("/api/admin/users?role=FIRM_OWNER", headers=admin["headers"]).json()["users"]
        assert [u["name"] for u in users] == ["Olive Owner"]

    def test_unknown_role_filter(self, client, admin):
        assert client.get("/api/admin/users?role=EMPEROR", headers=admin["headers"]).status_code == 400


class TestRoleChanges:

    def test_update_role(self, client, admin, make_user):
        jane = make_user("LAWYER")
        resp = _update_role(client, admin, jane["id"], "LAWYER_FIRM_OWNER")
        assert resp.status_code == 200
        assert resp.json()["user"]["role"] == "LAWYER_FIRM_OWNER"

        # New capability applies on the next request with the same token
        resp = client.get("/api/firm/profile", headers=jane["headers"])
        assert resp.status_code == 404

        with get_db_session() as db:
            assert db.query(User).filter(User.id == jane["id"]).one().role == UserRole.LAWYER_FIRM_OWNER
            assert db.query(AuditLog).filter(AuditLog.action == "UPDATE_USER_ROLE").count() == 1

    def test_cannot_change_own_role(self, client, admin):
        assert _update_role(client, admin, admin["id"], "LAWYER").status_code == 400

    def test_unknown_role(self, client, admin, make_user):
        jane = make_user("LAWYER")
        assert _update_role(client, admin, jane["id"], "EMPEROR").status_code == 400

    def test_unknown_user(self, client, admin):
        assert _update_role(client, admin, "missing", "LAWYER").status_code == 404

    def test_non_admin_refused(self, client, make_user):
        jane = make_user("LAWYER")
        assert _update_role(client, jane, jane["id"], "ADMIN").status_code == 401

    def test_unknown_field_rejected(self, client, admin, make_user):
        jane = make_user("LAWYER")
        resp = client.post(
            "/api/admin/users/update-role",
            json={"userId": jane["id"], "role": "FIRM_OWNER", "isActive": False},
            headers=admin["headers"],
        )
        assert resp.status_code == 400
