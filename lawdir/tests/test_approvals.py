"""
Pending Change Approval Tests
=============================
"""

from lawdir.db.session import get_db_session
from lawdir.db.models import Lawyer, PendingChange, AuditLog, Notification, ChangeStatus, ProfileStatus


def _submit(client, user, payload, method="post"):
    resp = getattr(client, method)("/api/lawyer/profile", json=payload, headers=user["headers"])
    assert resp.status_code in (200, 201), resp.text
    return resp.json()["pendingChange"]["id"]


def _decide(client, admin, change_id, action, notes=None, notes_field="adminNotes"):
    body = {"changeId": change_id, "action": action}
    if notes:
        body[notes_field] = notes
    return client.post("/api/admin/approvals", json=body, headers=admin["headers"])


class TestApprove:
    """Approving a staged change publishes the snapshot"""

    def test_jane_doe_approval_publishes(self, client, admin, make_user, lawyer_payload):
        jane = make_user("LAWYER")
        change_id = _submit(client, jane, lawyer_payload())

        listing = client.get("/api/admin/approvals", headers=admin["headers"]).json()["changes"]
        assert [c["id"] for c in listing] == [change_id]
        assert listing[0]["entityName"] == "Jane Doe"

        resp = _decide(client, admin, change_id, "approve", notes="Looks good")
        assert resp.status_code == 200
        body = resp.json()
        assert body["appliedSlug"] == "jane-doe"
        assert body["change"]["status"] == "APPROVED"
        assert body["change"]["processedByUserId"] == admin["id"]

        public = client.get("/api/lawyers/jane-doe")
        assert public.status_code == 200
        assert public.json()["firstName"] == "Jane"
        assert public.json()["reviewCount"] == 0

        with get_db_session() as db:
            audit = db.query(AuditLog).filter(AuditLog.action == "APPROVE_LAWYER_CHANGES").one()
            assert audit.extra_data["finalSlug"] == "jane-doe"
            assert audit.extra_data["adminNotes"] == "Looks good"
            note = db.query(Notification).filter(Notification.user_id == jane["id"]).one()
            assert note.type == "CHANGE_APPROVED"

    def test_unpublished_profile_not_public(self, client, make_user, lawyer_payload):
        jane = make_user("LAWYER")
        _submit(client, jane, lawyer_payload())
        assert client.get("/api/lawyers/jane-doe").status_code == 404

    def test_same_name_lawyers_get_distinct_slugs(self, client, admin, make_user, lawyer_payload):
        first = make_user("LAWYER")
        second = make_user("LAWYER")
        first_change = _submit(client, first, lawyer_payload())
        second_change = _submit(client, second, lawyer_payload())

        slugs = {
            _decide(client, admin, first_change, "approve").json()["appliedSlug"],
            _decide(client, admin, second_change, "approve").json()["appliedSlug"],
        }
        assert slugs == {"jane-doe", "jane-doe-1"}
        assert client.get("/api/lawyers/jane-doe").status_code == 200
        assert client.get("/api/lawyers/jane-doe-1").status_code == 200

    def test_approval_applies_latest_snapshot(self, client, admin, make_user, publish_lawyer, lawyer_payload):
        jane = make_user("LAWYER")
        publish_lawyer(jane)

        change_id = _submit(client, jane, lawyer_payload(position="Partner", yearsExperience=15), method="put")
        _decide(client, admin, change_id, "approve")

        public = client.get("/api/lawyers/jane-doe").json()
        assert public["position"] == "Partner"
        assert public["yearsExperience"] == 15
        assert public["status"] == "PUBLISHED"

    def test_double_approval_rejected_without_changes(self, client, admin, make_user, lawyer_payload):
        jane = make_user("LAWYER")
        change_id = _submit(client, jane, lawyer_payload())
        assert _decide(client, admin, change_id, "approve").status_code == 200

        with get_db_session() as db:
            before = db.query(PendingChange).filter(PendingChange.id == change_id).one().processed_at
            audits = db.query(AuditLog).filter(AuditLog.action == "APPROVE_LAWYER_CHANGES").count()

        resp = _decide(client, admin, change_id, "approve")
        assert resp.status_code == 400
        assert resp.json()["error"] == "This change has already been processed"

        resp = _decide(client, admin, change_id, "reject")
        assert resp.status_code == 400

        with get_db_session() as db:
            change = db.query(PendingChange).filter(PendingChange.id == change_id).one()
            assert change.status == ChangeStatus.APPROVED
            assert change.processed_at == before
            assert db.query(AuditLog).filter(AuditLog.action == "APPROVE_LAWYER_CHANGES").count() == audits

    def test_firm_approval(self, client, admin, make_user, firm_payload):
        owner = make_user("FIRM_OWNER")
        change_id = client.post(
            "/api/firm/profile", json=firm_payload(), headers=owner["headers"]
        ).json()["pendingChange"]["id"]

        resp = client.post(
            "/api/admin/approvals",
            json={"changeId": change_id, "action": "approve"},
            headers=admin["headers"],
        )
        assert resp.json()["appliedSlug"] == "doe-partners"

        public = client.get("/api/firms/doe-partners")
        assert public.status_code == 200
        assert public.json()["name"] == "Doe & Partners"
        # Contact details hidden unless the owner opts in
        assert public.json()["phone"] is None

    def test_slug_taken_while_pending_gets_suffix(self, client, admin, make_user, lawyer_payload):
        jane = make_user("LAWYER")
        change_id = _submit(client, jane, lawyer_payload())

        # Another live profile claims the proposed slug before the decision
        other = make_user("LAWYER")
        _submit(client, other, lawyer_payload("Janet", "Doe"))
        with get_db_session() as db:
            db.query(Lawyer).filter(Lawyer.user_id == jane["id"]).one().slug = "jane-doe-draft"
            db.flush()
            db.query(Lawyer).filter(Lawyer.user_id == other["id"]).one().slug = "jane-doe"

        resp = _decide(client, admin, change_id, "approve")
        assert resp.status_code == 200
        assert resp.json()["appliedSlug"] == "jane-doe-1"

        with get_db_session() as db:
            audit = db.query(AuditLog).filter(AuditLog.action == "APPROVE_LAWYER_CHANGES").one()
            assert audit.extra_data["originalSlug"] == "jane-doe"
            assert audit.extra_data["finalSlug"] == "jane-doe-1"


class TestReject:

    def test_reject_leaves_entity_unpublished(self, client, admin, make_user, lawyer_payload):
        jane = make_user("LAWYER")
        change_id = _submit(client, jane, lawyer_payload())

        resp = _decide(client, admin, change_id, "reject", notes="Missing bio details")
        assert resp.status_code == 200
        assert resp.json()["appliedSlug"] is None
        assert resp.json()["change"]["status"] == "REJECTED"

        with get_db_session() as db:
            lawyer = db.query(Lawyer).one()
            assert lawyer.status == ProfileStatus.DRAFT
            audit = db.query(AuditLog).filter(AuditLog.action == "REJECT_LAWYER_CHANGES").one()
            assert audit.extra_data["rejectedChanges"]["firstName"] == "Jane"
            note = db.query(Notification).filter(Notification.user_id == jane["id"]).one()
            assert note.type == "CHANGE_REJECTED"
            assert note.message == "Missing bio details"

        assert client.get("/api/lawyers/jane-doe").status_code == 404

    def test_notes_field_is_kept(self, client, admin, make_user, lawyer_payload):
        jane = make_user("LAWYER")
        change_id = _submit(client, jane, lawyer_payload())

        resp = _decide(client, admin, change_id, "reject", notes="Bio missing", notes_field="notes")
        assert resp.status_code == 200
        assert resp.json()["change"]["adminNotes"] == "Bio missing"

        with get_db_session() as db:
            note = db.query(Notification).filter(Notification.user_id == jane["id"]).one()
            assert note.message == "Bio missing"

    def test_reject_does_not_touch_entity(self, client, admin, make_user, publish_lawyer, lawyer_payload):
        jane = make_user("LAWYER")
        publish_lawyer(jane)
        change_id = _submit(client, jane, lawyer_payload(bio="Changed"), method="put")
        before = client.get("/api/lawyer/profile", headers=jane["headers"]).json()["profile"]

        _decide(client, admin, change_id, "reject")

        after = client.get("/api/lawyer/profile", headers=jane["headers"]).json()["profile"]
        assert after == before

        with get_db_session() as db:
            change = db.query(PendingChange).filter(PendingChange.id == change_id).one()
            assert change.status == ChangeStatus.REJECTED


class TestApprovalRequests:
    """Bad requests and listing"""

    def test_invalid_action(self, client, admin, make_user, lawyer_payload):
        jane = make_user("LAWYER")
        change_id = _submit(client, jane, lawyer_payload())

        resp = _decide(client, admin, change_id, "publish")
        assert resp.status_code == 400
        with get_db_session() as db:
            assert db.query(PendingChange).one().status == ChangeStatus.PENDING

    def test_unknown_change_is_404(self, client, admin):
        resp = _decide(client, admin, "missing-id", "approve")
        assert resp.status_code == 404
        assert resp.json()["error"] == "Change not found"

        assert client.get("/api/admin/approvals/missing-id", headers=admin["headers"]).status_code == 404

    def test_non_admin_cannot_approve(self, client, make_user, lawyer_payload):
        jane = make_user("LAWYER")
        change_id = _submit(client, jane, lawyer_payload())

        resp = _decide(client, jane, change_id, "approve")
        assert resp.status_code == 401
        with get_db_session() as db:
            assert db.query(PendingChange).one().status == ChangeStatus.PENDING

    def test_change_detail_and_status_filter(self, client, admin, make_user, lawyer_payload):
        jane = make_user("LAWYER")
        change_id = _submit(client, jane, lawyer_payload())

        detail = client.get(f"/api/admin/approvals/{change_id}", headers=admin["headers"]).json()
        assert detail["current"]["slug"] == "jane-doe"

        _decide(client, admin, change_id, "approve")
        assert client.get("/api/admin/approvals", headers=admin["headers"]).json()["changes"] == []
        approved = client.get("/api/admin/approvals?status=APPROVED", headers=admin["headers"]).json()["changes"]
        assert len(approved) == 1
        assert client.get("/api/admin/approvals?status=bogus", headers=admin["headers"]).status_code == 400
