"""
API tests - role gating, error mapping and the full placement flow over HTTP.
"""

import logging
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from app.main import create_app

TODAY = date(2026, 3, 10)


@pytest.fixture
def client(settings, engine):
    return TestClient(create_app(settings, engine=engine))


def as_user(user_id):
    return {"X-User-ID": user_id}


def posting(**overrides):
    body = {
        "title": "Backend Intern",
        "description": "APIs and databases",
        "level": "BASIC",
        "preferred_major": "CSC",
        "opening_date": (TODAY - timedelta(days=1)).isoformat(),
        "closing_date": (TODAY + timedelta(days=14)).isoformat(),
        "total_slots": 1,
    }
    body.update(overrides)
    return body


def publish(client, **overrides):
    response = client.post("/api/internships", json=posting(**overrides), headers=as_user("rep1"))
    assert response.status_code == 201, response.text
    opportunity_id = response.json()["opportunity_id"]
    response = client.post(f"/api/staff/internships/{opportunity_id}/approve", headers=as_user("staff1"))
    assert response.status_code == 200, response.text
    return opportunity_id


class TestActorResolution:
    def test_missing_header(self, client):
        assert client.get("/api/internships").status_code == 422

    def test_unknown_user(self, client):
        assert client.get("/api/internships", headers=as_user("ghost")).status_code == 401

    def test_role_gates(self, client):
        assert client.post("/api/internships", json=posting(), headers=as_user("S_CSC_Y3")).status_code == 403
        assert client.get("/api/staff/statistics", headers=as_user("rep1")).status_code == 403
        assert client.get("/api/students/profile", headers=as_user("staff1")).status_code == 403

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy", "database": "disabled"}


class TestPlacementFlow:
    def test_apply_review_accept(self, client):
        chosen = publish(client, title="Chosen")
        other = publish(client, title="Other", total_slots=2)

        response = client.post(f"/api/internships/{chosen}/apply", headers=as_user("S_CSC_Y3"))
        assert response.status_code == 201
        chosen_app = response.json()["application_id"]
        other_app = client.post(f"/api/internships/{other}/apply", headers=as_user("S_CSC_Y3")).json()["application_id"]

        received = client.get("/api/companies/applications", headers=as_user("rep1")).json()
        assert [a["application_id"] for a in received] == [other_app, chosen_app]

        response = client.post(f"/api/companies/applications/{chosen_app}/approve", headers=as_user("rep1"))
        assert response.json()["status"] == "SUCCESSFUL"

        response = client.post(f"/api/students/applications/{chosen_app}/accept", headers=as_user("S_CSC_Y3"))
        assert response.status_code == 200
        assert response.json()["withdrawn_application_ids"] == [other_app]

        detail = client.get(f"/api/internships/{chosen}", headers=as_user("staff1")).json()
        assert detail["status"] == "FILLED"
        assert detail["available_slots"] == 0

        profile = client.get("/api/students/profile", headers=as_user("S_CSC_Y3")).json()
        assert profile["accepted_opportunity"] == chosen
        assert profile["applied_opportunities"] == [chosen]
        assert profile["major_name"] == "Computer Science"

    def test_withdrawal_decided_by_staff(self, client):
        opportunity_id = publish(client)
        app_id = client.post(f"/api/internships/{opportunity_id}/apply", headers=as_user("S_CSC_Y3")).json()["application_id"]

        response = client.post(
            f"/api/students/applications/{app_id}/withdrawal",
            json={"reason": "Found another offer"},
            headers=as_user("S_CSC_Y3"),
        )
        assert response.json()["withdrawal_requested"] is True

        waiting = client.get("/api/staff/withdrawals", headers=as_user("staff1")).json()
        assert [a["application_id"] for a in waiting] == [app_id]

        response = client.post(f"/api/staff/withdrawals/{app_id}/approve", headers=as_user("staff1"))
        assert response.json()["status"] == "WITHDRAWN"
        assert client.get("/api/staff/withdrawals", headers=as_user("staff1")).json() == []

    def test_representative_approval(self, client):
        pending = client.get("/api/staff/representatives/pending", headers=as_user("staff1")).json()
        assert [r["user_id"] for r in pending] == ["rep_new"]

        assert client.post("/api/internships", json=posting(), headers=as_user("rep_new")).status_code == 403
        response = client.post("/api/staff/representatives/rep_new/approve", headers=as_user("staff1"))
        assert response.json()["approved"] is True
        assert client.post("/api/internships", json=posting(), headers=as_user("rep_new")).status_code == 201


class TestErrorMapping:
    def test_ineligible_is_422(self, client):
        opportunity_id = publish(client, level="ADVANCED")
        response = client.post(f"/api/internships/{opportunity_id}/apply", headers=as_user("S_CSC_Y2"))
        assert response.status_code == 422

    def test_capacity_is_409(self, client):
        for title in ("A", "B", "C", "D"):
            publish(client, title=title)
        opportunity_ids = [o["opportunity_id"] for o in client.get("/api/internships", headers=as_user("S_CSC_Y3")).json()]
        codes = [
            client.post(f"/api/internships/{opp_id}/apply", headers=as_user("S_CSC_Y3")).status_code
            for opp_id in opportunity_ids
        ]
        assert codes == [201, 201, 201, 409]

    def test_not_found_is_404(self, client):
        assert client.post("/api/internships/INT999999/apply", headers=as_user("S_CSC_Y3")).status_code == 404
        assert client.get("/api/internships/INT999999", headers=as_user("S_CSC_Y3")).status_code == 404
        assert client.post("/api/staff/withdrawals/APP999999/approve", headers=as_user("staff1")).status_code == 404

    def test_delete_approved_posting_with_applicants_is_409(self, client):
        opportunity_id = publish(client)
        client.post(f"/api/internships/{opportunity_id}/apply", headers=as_user("S_CSC_Y3"))
        assert client.delete(f"/api/internships/{opportunity_id}", headers=as_user("rep1")).status_code == 409

    def test_other_representative_is_403(self, client):
        opportunity_id = publish(client)
        response = client.put(
            f"/api/internships/{opportunity_id}/visibility", json={"visible": False}, headers=as_user("rep2")
        )
        assert response.status_code == 403
        assert client.get(f"/api/internships/{opportunity_id}/applications", headers=as_user("rep2")).status_code == 403

    def test_bad_body_is_422(self, client):
        response = client.post("/api/internships", json=posting(level="EXPERT"), headers=as_user("rep1"))
        assert response.status_code == 422


class TestPostingDetail:
    def test_student_cannot_fetch_unreviewed_posting(self, client):
        response = client.post("/api/internships", json=posting(), headers=as_user("rep1"))
        opportunity_id = response.json()["opportunity_id"]

        assert client.get(f"/api/internships/{opportunity_id}", headers=as_user("S_CSC_Y3")).status_code == 404
        assert client.get(f"/api/internships/{opportunity_id}", headers=as_user("rep1")).json()["status"] == "PENDING"
        assert client.get(f"/api/internships/{opportunity_id}", headers=as_user("staff1")).status_code == 200

    def test_student_cannot_fetch_ineligible_posting(self, client):
        opportunity_id = publish(client, level="ADVANCED")
        assert client.get(f"/api/internships/{opportunity_id}", headers=as_user("S_CSC_Y2")).status_code == 404
        assert client.get(f"/api/internships/{opportunity_id}", headers=as_user("S_CSC_Y3")).status_code == 200

    def test_hidden_posting_only_for_its_applicants(self, client):
        opportunity_id = publish(client)
        client.post(f"/api/internships/{opportunity_id}/apply", headers=as_user("S_CSC_Y3"))
        client.put(f"/api/internships/{opportunity_id}/visibility", json={"visible": False}, headers=as_user("rep1"))

        assert client.get(f"/api/internships/{opportunity_id}", headers=as_user("S_CSC_Y3")).status_code == 200
        assert client.get(f"/api/internships/{opportunity_id}", headers=as_user("S_CSC_Y4")).status_code == 404

    def test_representative_sees_only_own_postings(self, client):
        opportunity_id = publish(client)
        assert client.get(f"/api/internships/{opportunity_id}", headers=as_user("rep2")).status_code == 404
        assert client.get(f"/api/internships/{opportunity_id}", headers=as_user("rep1")).status_code == 200


class TestListings:
    def test_filters_from_query_string(self, client):
        publish(client, title="Small", total_slots=1)
        publish(client, title="Large", total_slots=3)

        response = client.get("/api/internships", params={"min_available_slots": 2}, headers=as_user("staff1"))

        assert [o["title"] for o in response.json()] == ["Large"]

    def test_filtered_listing_is_logged(self, client, caplog):
        caplog.set_level(logging.DEBUG, logger="app.api.routes.internship_routes")

        client.get("/api/internships", headers=as_user("staff1"))
        assert "filtered by" not in caplog.text

        client.get("/api/internships", params={"level": "BASIC"}, headers=as_user("staff1"))
        assert "Listing for staff1 filtered by" in caplog.text

    def test_statistics(self, client):
        publish(client)
        stats = client.get("/api/staff/statistics", headers=as_user("staff1")).json()
        assert stats["opportunities"]["approved"] == 1
        assert stats["applications"]["total"] == 0
