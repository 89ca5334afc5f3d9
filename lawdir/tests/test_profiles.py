"""
Profile Submission Tests
========================

Own-profile create / update for lawyers and firms, staging of pending
changes and child collection reconciliation.
"""

from lawdir.db.session import get_db_session
from lawdir.db.models import (
    Lawyer, LawFirm, PendingChange, Notification, AuditLog, LawyerLanguage, LawyerSpecialisation,
    ChangeStatus, ProfileStatus,
)


def _count(model, *criteria):
    with get_db_session() as db:
        return db.query(model).filter(*criteria).count()


# =============================================================================
# LAWYER
# =============================================================================

class TestLawyerCreate:
    """First submission of a lawyer's own profile"""

    def test_create_lawyer_profile_stages_change(self, client, admin, make_user, lawyer_payload):
        lawyer = make_user("LAWYER")

        resp = client.post("/api/lawyer/profile", json=lawyer_payload(), headers=lawyer["headers"])
        assert resp.status_code == 201
        body = resp.json()
        assert body["profile"]["slug"] == "jane-doe"
        assert body["profile"]["status"] == "DRAFT"
        assert body["pendingChange"]["status"] == "PENDING"
        assert body["pendingChange"]["changes"]["action"] == "CREATE"
        assert body["pendingChange"]["changes"]["kind"] == "LAWYER"
        assert body["pendingChange"]["changes"]["firstName"] == "Jane"

        assert _count(PendingChange) == 1
        assert _count(Notification, Notification.user_id == admin["id"], Notification.type == "PENDING_CHANGE") == 1
        assert _count(AuditLog, AuditLog.action == "CREATE_LAWYER_PROFILE") == 1

    def test_missing_last_name_persists_nothing(self, client, make_user, lawyer_payload):
        lawyer = make_user("LAWYER")

        resp = client.post("/api/lawyer/profile", json=lawyer_payload(last="   "), headers=lawyer["headers"])
        assert resp.status_code == 400
        assert resp.json()["error"] == "Validation failed"

        payload = lawyer_payload()
        del payload["firstName"]
        resp = client.post("/api/lawyer/profile", json=payload, headers=lawyer["headers"])
        assert resp.status_code == 400

        assert _count(Lawyer) == 0
        assert _count(PendingChange) == 0

    def test_unknown_specialisation_rejected(self, client, make_user, lawyer_payload):
        lawyer = make_user("LAWYER")
        payload = lawyer_payload(specialisations=[{"specialisationId": "does-not-exist"}])

        resp = client.post("/api/lawyer/profile", json=payload, headers=lawyer["headers"])
        assert resp.status_code == 400
        assert resp.json()["details"]["missing"] == ["does-not-exist"]
        assert _count(Lawyer) == 0

    def test_second_create_rejected(self, client, make_user, lawyer_payload):
        lawyer = make_user("LAWYER")
        assert client.post("/api/lawyer/profile", json=lawyer_payload(), headers=lawyer["headers"]).status_code == 201

        resp = client.post("/api/lawyer/profile", json=lawyer_payload(), headers=lawyer["headers"])
        assert resp.status_code == 400
        assert _count(Lawyer) == 1


class TestLawyerFormFields:
    """Field names the lawyer form actually posts"""

    def test_practice_areas_accepted_on_create(self, client, make_user, lawyer_payload, specialisation_ids):
        lawyer = make_user("LAWYER")
        family = specialisation_ids["Family Law"]
        payload = lawyer_payload(practiceAreas=[{"specialisationId": family, "yearsExperience": 5}])
        del payload["specialisations"]

        resp = client.post("/api/lawyer/profile", json=payload, headers=lawyer["headers"])
        assert resp.status_code == 201, resp.text
        profile = resp.json()["profile"]
        assert [s["name"] for s in profile["specialisations"]] == ["Family Law"]
        assert profile["specialisations"][0]["yearsExperience"] == 5
        assert resp.json()["pendingChange"]["changes"]["specialisations"][0]["specialisationId"] == family

    def test_practice_areas_replace_on_update(self, client, make_user, lawyer_payload, specialisation_ids):
        lawyer = make_user("LAWYER")
        family = specialisation_ids["Family Law"]
        criminal = specialisation_ids["Criminal Law"]

        payload = lawyer_payload(practiceAreas=[{"specialisationId": family}])
        del payload["specialisations"]
        client.post("/api/lawyer/profile", json=payload, headers=lawyer["headers"])

        payload = lawyer_payload(practiceAreas=[{"specialisationId": criminal, "yearsExperience": 2}])
        del payload["specialisations"]
        resp = client.put("/api/lawyer/profile", json=payload, headers=lawyer["headers"])
        assert resp.status_code == 200, resp.text
        assert [s["name"] for s in resp.json()["profile"]["specialisations"]] == ["Criminal Law"]
        assert _count(LawyerSpecialisation) == 1

    def test_unknown_field_rejected(self, client, make_user, lawyer_payload):
        lawyer = make_user("LAWYER")
        resp = client.post(
            "/api/lawyer/profile",
            json=lawyer_payload(favouriteColour="green"),
            headers=lawyer["headers"],
        )
        assert resp.status_code == 400
        assert _count(Lawyer) == 0
        assert _count(PendingChange) == 0


class TestLawyerUpdate:
    """Resubmission, re-approval and child rows"""

    def test_update_without_profile_is_404(self, client, make_user, lawyer_payload):
        lawyer = make_user("LAWYER")
        resp = client.put("/api/lawyer/profile", json=lawyer_payload(), headers=lawyer["headers"])
        assert resp.status_code == 404

        resp = client.get("/api/lawyer/profile", headers=lawyer["headers"])
        assert resp.status_code == 404

    def test_resubmission_supersedes_pending_change(self, client, admin, make_user, lawyer_payload):
        lawyer = make_user("LAWYER")
        first = client.post("/api/lawyer/profile", json=lawyer_payload(), headers=lawyer["headers"]).json()

        resp = client.put(
            "/api/lawyer/profile",
            json=lawyer_payload(bio="Now doing appeals too."),
            headers=lawyer["headers"],
        )
        assert resp.status_code == 200
        second = resp.json()

        assert second["pendingChange"]["id"] == first["pendingChange"]["id"]
        # Never approved, so it is still a creation
        assert second["pendingChange"]["changes"]["action"] == "CREATE"
        assert second["pendingChange"]["changes"]["bio"] == "Now doing appeals too."
        assert _count(PendingChange, PendingChange.status == ChangeStatus.PENDING) == 1
        # Stale unread admin notification replaced by a fresh one
        assert _count(Notification, Notification.user_id == admin["id"]) == 1

    def test_update_after_approval_is_new_change(self, client, admin, make_user, publish_lawyer, lawyer_payload):
        lawyer = make_user("LAWYER")
        publish_lawyer(lawyer)

        resp = client.put("/api/lawyer/profile", json=lawyer_payload(position="Partner"), headers=lawyer["headers"])
        assert resp.status_code == 200
        body = resp.json()
        assert body["pendingChange"]["changes"]["action"] == "UPDATE"
        assert body["profile"]["status"] == "DRAFT"
        assert _count(PendingChange) == 2

    def test_rename_regenerates_slug(self, client, make_user, lawyer_payload):
        taken = make_user("LAWYER")
        client.post("/api/lawyer/profile", json=lawyer_payload("John", "Smith"), headers=taken["headers"])

        lawyer = make_user("LAWYER")
        client.post("/api/lawyer/profile", json=lawyer_payload(), headers=lawyer["headers"])
        resp = client.put("/api/lawyer/profile", json=lawyer_payload("John", "Smith"), headers=lawyer["headers"])

        assert resp.json()["profile"]["slug"] == "john-smith-1"
        assert resp.json()["pendingChange"]["changes"]["slug"] == "john-smith-1"

    def test_child_collections_reconciled(self, client, make_user, lawyer_payload, specialisation_ids):
        lawyer = make_user("LAWYER")
        family = specialisation_ids["Family Law"]
        criminal = specialisation_ids["Criminal Law"]

        payload = lawyer_payload(
            specialisations=[{"specialisationId": family, "yearsExperience": 5}],
            languages=[{"languageName": "English", "proficiencyLevel": "Native"}, {"languageName": "Greek"}],
        )
        client.post("/api/lawyer/profile", json=payload, headers=lawyer["headers"])
        with get_db_session() as db:
            english_id = db.query(LawyerLanguage).filter(LawyerLanguage.language_name == "English").one().id

        payload = lawyer_payload(
            specialisations=[
                {"specialisationId": family, "yearsExperience": 6},
                {"specialisationId": criminal},
            ],
            languages=[{"languageName": "english", "proficiencyLevel": "Native"}],
        )
        resp = client.put("/api/lawyer/profile", json=payload, headers=lawyer["headers"])
        profile = resp.json()["profile"]

        assert sorted(s["name"] for s in profile["specialisations"]) == ["Criminal Law", "Family Law"]
        family_row = next(s for s in profile["specialisations"] if s["specialisationId"] == family)
        assert family_row["yearsExperience"] == 6
        # Matched language row updated in place, removed one deleted
        assert [lang["id"] for lang in profile["languages"]] == [english_id]
        assert _count(LawyerLanguage) == 1


# =============================================================================
# FIRM
# =============================================================================

class TestFirmProfile:

    def test_create_firm_profile(self, client, admin, make_user, firm_payload, specialisation_ids):
        owner = make_user("FIRM_OWNER")
        payload = firm_payload(practiceAreas=[specialisation_ids["Property Law"]])

        resp = client.post("/api/firm/profile", json=payload, headers=owner["headers"])
        assert resp.status_code == 201
        profile = resp.json()["profile"]
        assert profile["slug"] == "doe-partners"
        assert profile["locations"][0]["isPrimary"] is True
        assert [pa["name"] for pa in profile["practiceAreas"]] == ["Property Law"]
        assert resp.json()["pendingChange"]["changes"]["kind"] == "FIRM"

    def test_firm_requires_contact_fields(self, client, make_user, firm_payload):
        owner = make_user("FIRM_OWNER")
        resp = client.post("/api/firm/profile", json=firm_payload(phone=""), headers=owner["headers"])
        assert resp.status_code == 400
        assert _count(LawFirm) == 0

    def test_lawyer_firm_owner_can_hold_both(self, client, make_user, lawyer_payload, firm_payload):
        both = make_user("LAWYER_FIRM_OWNER")
        assert client.post("/api/lawyer/profile", json=lawyer_payload(), headers=both["headers"]).status_code == 201
        assert client.post("/api/firm/profile", json=firm_payload(), headers=both["headers"]).status_code == 201

        with get_db_session() as db:
            assert db.query(Lawyer).one().status == ProfileStatus.DRAFT
            assert db.query(LawFirm).one().status == ProfileStatus.DRAFT
