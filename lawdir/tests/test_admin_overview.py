"""
Admin Overview Tests
====================

Lawyer and firm listings across every status, dashboard counters and
the per-entity audit trail.
"""

import pytest

from lawdir.db.session import get_db_session
from lawdir.db.models import Lawyer

COMMENT = "Explained everything clearly and got a great result for our family."


def _review(client, target_id, email, target_type="LAWYER"):
    resp = client.post("/api/reviews/submit", json={
        "reviewerName": "Casey Client",
        "reviewerEmail": email,
        "targetType": target_type,
        "targetId": target_id,
        "communicationRating": 5,
        "expertiseRating": 4,
        "valueRating": 3,
        "comment": COMMENT,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["review"]["id"]


def _approve(client, admin, review_id):
    resp = client.post(
        "/api/admin/reviews/moderate",
        json={"reviewId": review_id, "action": "approve"},
        headers=admin["headers"],
    )
    assert resp.status_code == 200, resp.text


@pytest.fixture
def overview(client, admin, make_user, publish_lawyer, publish_firm, lawyer_payload):
    """Published Jane at Doe & Partners, draft Dana, one approved and one pending review"""
    jane_user = make_user("LAWYER", email="jane@example.com")
    jane = publish_lawyer(jane_user)
    firm = publish_firm(make_user("FIRM_OWNER", email="owner@example.com"))
    with get_db_session() as db:
        db.query(Lawyer).filter(Lawyer.id == jane["id"]).one().firm_id = firm["id"]

    dana_user = make_user("LAWYER", email="dana@example.com")
    client.post("/api/lawyer/profile", json=lawyer_payload("Dana", "Draft"), headers=dana_user["headers"])

    approved = _review(client, jane["id"], "a@example.com")
    _approve(client, admin, approved)
    pending = _review(client, jane["id"], "b@example.com")

    client.post("/api/contact/general", json={
        "name": "Pat Public",
        "email": "pat@example.com",
        "message": "Do you list lawyers in Hobart?",
    })
    return {"jane": jane, "firm": firm, "approved": approved, "pending": pending}


class TestAdminLawyerListing:

    def test_lists_every_status(self, client, admin, overview):
        lawyers = client.get("/api/admin/lawyers", headers=admin["headers"]).json()["lawyers"]
        by_name = {row["name"]: row for row in lawyers}
        assert sorted(by_name) == ["Dana Draft", "Jane Doe"]

        jane = by_name["Jane Doe"]
        assert jane["status"] == "PUBLISHED"
        assert jane["email"] == "jane@example.com"
        assert jane["firm"] == {"id": overview["firm"]["id"], "name": "Doe & Partners"}
        # only the approved review counts
        assert jane["reviewCount"] == 1
        assert jane["avgRating"] == 4.0

        dana = by_name["Dana Draft"]
        assert dana["status"] == "DRAFT"
        assert dana["firm"] is None
        assert dana["reviewCount"] == 0

    def test_status_and_name_filters(self, client, admin, overview):
        drafts = client.get("/api/admin/lawyers?status=draft", headers=admin["headers"]).json()["lawyers"]
        assert [row["name"] for row in drafts] == ["Dana Draft"]

        found = client.get("/api/admin/lawyers?q=jane%20doe", headers=admin["headers"]).json()["lawyers"]
        assert [row["slug"] for row in found] == ["jane-doe"]

    def test_invalid_status(self, client, admin, overview):
        resp = client.get("/api/admin/lawyers?status=ARCHIVED", headers=admin["headers"])
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid status"

    def test_admin_only(self, client, overview, make_user):
        lawyer = make_user("LAWYER")
        assert client.get("/api/admin/lawyers", headers=lawyer["headers"]).status_code == 401
        assert client.get("/api/admin/firms", headers=lawyer["headers"]).status_code == 401
        assert client.get("/api/admin/stats", headers=lawyer["headers"]).status_code == 401


class TestAdminFirmListing:

    def test_lists_firms_with_counts(self, client, admin, overview):
        firms = client.get("/api/admin/firms", headers=admin["headers"]).json()["firms"]
        assert len(firms) == 1
        firm = firms[0]
        assert firm["slug"] == "doe-partners"
        assert firm["ownerEmail"] == "owner@example.com"
        assert firm["status"] == "PUBLISHED"
        assert firm["lawyerCount"] == 1
        assert firm["reviewCount"] == 0

        drafts = client.get("/api/admin/firms?status=DRAFT", headers=admin["headers"]).json()["firms"]
        assert drafts == []


class TestDashboardStats:

    def test_counts(self, client, admin, overview):
        stats = client.get("/api/admin/stats", headers=admin["headers"]).json()
        assert stats == {
            # admin, jane, owner, dana and the two reviewers
            "users": 6,
            "lawyers": 2,
            "firms": 1,
            "reviews": 2,
            "pendingChanges": 1,
            "pendingReviews": 1,
            "newMessages": 1,
        }


class TestAuditTrail:

    def test_review_history(self, client, admin, overview):
        resp = client.get(
            f"/api/admin/audit?entityType=review&entityId={overview['approved']}",
            headers=admin["headers"],
        )
        assert resp.status_code == 200
        entries = resp.json()["entries"]
        assert [e["action"] for e in entries] == ["REVIEW_APPROVE"]
        assert entries[0]["userId"] == admin["id"]
        assert entries[0]["entityType"] == "REVIEW"
        assert entries[0]["details"]["newStatus"] == "APPROVED"

        resp = client.get(
            f"/api/admin/audit?entityType=REVIEW&entityId={overview['pending']}",
            headers=admin["headers"],
        )
        assert resp.json()["entries"] == []

    def test_invalid_entity_type(self, client, admin, overview):
        resp = client.get(
            f"/api/admin/audit?entityType=PLANET&entityId={overview['approved']}",
            headers=admin["headers"],
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid entity type"

        assert client.get("/api/admin/audit", headers=admin["headers"]).status_code == 400

    def test_admin_only(self, client, overview):
        resp = client.get(
            f"/api/admin/audit?entityType=REVIEW&entityId={overview['approved']}",
            headers={"Authorization": "Bearer nonsense"},
        )
        assert resp.status_code == 401
