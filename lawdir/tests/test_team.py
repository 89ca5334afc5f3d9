"""
Firm Team Tests
===============

Invitations, membership changes and team listing.
"""

from datetime import datetime, timedelta

import pytest

from lawdir.db.session import get_db_session
from lawdir.db.models import FirmInvitation, InvitationStatus, Lawyer, AuditLog


@pytest.fixture
def team(client, make_user, publish_firm, publish_lawyer):
    owner = make_user("FIRM_OWNER")
    firm = publish_firm(owner)
    lawyer = make_user("LAWYER", email="jane@example.com")
    profile = publish_lawyer(lawyer)
    return {"owner": owner, "firm": firm, "lawyer": lawyer, "profile": profile}


def _invite(client, owner, email="jane@example.com"):
    return client.post("/api/firm/team/invite", json={"email": email}, headers=owner["headers"])


def _answer(client, lawyer, invitation_id, action):
    return client.post(
        "/api/lawyer/firm/invitation",
        json={"invitationId": invitation_id, "action": action},
        headers=lawyer["headers"],
    )


class TestInvitations:

    def test_invite_and_accept(self, client, team):
        resp = _invite(client, team["owner"])
        assert resp.status_code == 201
        invitation = resp.json()["invitation"]
        assert invitation["status"] == "PENDING"
        assert invitation["lawyerName"] == "Jane Doe"

        listed = client.get("/api/lawyer/firm/invitation", headers=team["lawyer"]["headers"]).json()["invitations"]
        assert [i["id"] for i in listed] == [invitation["id"]]

        resp = _answer(client, team["lawyer"], invitation["id"], "accept")
        assert resp.status_code == 200
        assert resp.json()["invitation"]["status"] == "ACCEPTED"

        members = client.get("/api/firm/team", headers=team["owner"]["headers"]).json()
        assert [m["name"] for m in members["lawyers"]] == ["Jane Doe"]
        assert members["pendingInvitations"] == []

        public = client.get("/api/firms/doe-partners").json()
        assert [m["slug"] for m in public["lawyers"]] == ["jane-doe"]

    def test_invite_unknown_email_is_404(self, client, team):
        assert _invite(client, team["owner"], email="nobody@example.com").status_code == 404

    def test_duplicate_pending_invitation_rejected(self, client, team):
        assert _invite(client, team["owner"]).status_code == 201
        assert _invite(client, team["owner"]).status_code == 400

    def test_invite_existing_member_rejected(self, client, team):
        invitation_id = _invite(client, team["owner"]).json()["invitation"]["id"]
        _answer(client, team["lawyer"], invitation_id, "accept")
        assert _invite(client, team["owner"]).status_code == 400

    def test_decline(self, client, team):
        invitation_id = _invite(client, team["owner"]).json()["invitation"]["id"]
        resp = _answer(client, team["lawyer"], invitation_id, "decline")
        assert resp.json()["invitation"]["status"] == "DECLINED"

        with get_db_session() as db:
            assert db.query(Lawyer).one().firm_id is None
        assert _answer(client, team["lawyer"], invitation_id, "accept").status_code == 400

    def test_expired_invitation(self, client, team):
        invitation_id = _invite(client, team["owner"]).json()["invitation"]["id"]
        with get_db_session() as db:
            invitation = db.query(FirmInvitation).filter(FirmInvitation.id == invitation_id).one()
            invitation.expires_at = datetime.utcnow() - timedelta(days=1)

        resp = _answer(client, team["lawyer"], invitation_id, "accept")
        assert resp.status_code == 400

        with get_db_session() as db:
            invitation = db.query(FirmInvitation).filter(FirmInvitation.id == invitation_id).one()
            assert invitation.status == InvitationStatus.EXPIRED
            assert db.query(Lawyer).one().firm_id is None

    def test_invitation_for_someone_else(self, client, make_user, team):
        invitation_id = _invite(client, team["owner"]).json()["invitation"]["id"]
        other = make_user("LAWYER")
        client.post("/api/lawyer/profile", json={"firstName": "Other", "lastName": "Lawyer"}, headers=other["headers"])

        assert _answer(client, other, invitation_id, "accept").status_code == 403
        assert _answer(client, team["lawyer"], invitation_id, "maybe").status_code == 400


class TestMembership:

    def test_leave_and_remove(self, client, team):
        invitation_id = _invite(client, team["owner"]).json()["invitation"]["id"]
        _answer(client, team["lawyer"], invitation_id, "accept")

        resp = client.post("/api/lawyer/firm/leave", headers=team["lawyer"]["headers"])
        assert resp.status_code == 200
        assert client.post("/api/lawyer/firm/leave", headers=team["lawyer"]["headers"]).status_code == 400

        resp = client.post(
            "/api/firm/team/remove",
            json={"lawyerId": team["profile"]["id"]},
            headers=team["owner"]["headers"],
        )
        assert resp.status_code == 404

        invitation_id = _invite(client, team["owner"]).json()["invitation"]["id"]
        _answer(client, team["lawyer"], invitation_id, "accept")
        resp = client.post(
            "/api/firm/team/remove",
            json={"lawyerId": team["profile"]["id"]},
            headers=team["owner"]["headers"],
        )
        assert resp.status_code == 200

        with get_db_session() as db:
            assert db.query(Lawyer).one().firm_id is None
            actions = {a.action for a in db.query(AuditLog).all()}
        assert {"INVITE_LAWYER_TO_FIRM", "ACCEPT_FIRM_INVITATION", "LEAVE_FIRM", "REMOVE_LAWYER_FROM_FIRM"} <= actions

    def test_other_owner_cannot_manage_firm(self, client, make_user, publish_firm, team):
        intruder = make_user("FIRM_OWNER")
        publish_firm(intruder, name="Rival Legal")

        resp = client.get(f"/api/firm/team?firmId={team['firm']['id']}", headers=intruder["headers"])
        assert resp.status_code == 403

        resp = client.post(
            "/api/firm/team/invite",
            json={"email": "jane@example.com", "firmId": team["firm"]["id"]},
            headers=intruder["headers"],
        )
        assert resp.status_code == 403

    def test_admin_can_manage_any_firm(self, client, admin, team):
        resp = client.get(f"/api/firm/team?firmId={team['firm']['id']}", headers=admin["headers"])
        assert resp.status_code == 200
        assert resp.json()["firmId"] == team["firm"]["id"]
