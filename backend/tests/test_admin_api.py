from __future__ import annotations
from datetime import datetime

import pytest

from ebes.models.user import User
from ebes.services import org
from ebes.services.recruiter import create_submission
from ebes.services.users import principal_for


@pytest.fixture()
def admin_headers(db_session, auth_headers):
    admin = db_session.query(User).filter(User.role == "admin").one()
    return auth_headers(admin)


def test_user_management(client, admin_headers):
    res = client.post(
        "/api/v1/admin/users",
        json={"name": "Ana", "email": "Ana@Example.com", "password": "pw", "role": "account_manager"},
        headers=admin_headers,
    )
    assert res.status_code == 200
    user = res.json()
    assert user["email"] == "ana@example.com"
    assert user["user_code"] == f"USR-{user['id']:04d}"

    duplicate = client.post(
        "/api/v1/admin/users",
        json={"name": "Ana 2", "email": "ana@example.com", "password": "pw", "role": "recruiter"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 400

    patched = client.patch(f"/api/v1/admin/users/{user['id']}", json={"name": "Ana B"}, headers=admin_headers)
    assert patched.json()["name"] == "Ana B"
    assert client.patch("/api/v1/admin/users/999", json={"name": "x"}, headers=admin_headers).status_code == 404

    emails = [u["email"] for u in client.get("/api/v1/admin/users", headers=admin_headers).json()]
    assert "ana@example.com" in emails


def test_clients_teams_and_assignments(client, db_session, admin_headers, make_user):
    manager = make_user("account_manager")
    recruiter = make_user("recruiter")

    acme = client.post("/api/v1/admin/clients", json={"name": "Acme"}, headers=admin_headers).json()
    team = client.post("/api/v1/admin/teams", json={"name": "Alpha"}, headers=admin_headers).json()
    assert acme["client_code"] == "CL-0001"
    assert [t["name"] for t in client.get("/api/v1/admin/teams", headers=admin_headers).json()] == ["Alpha"]

    assert client.post(
        "/api/v1/admin/assign-client", json={"user_id": manager.id, "client_id": acme["id"]}, headers=admin_headers
    ).status_code == 200
    again = client.post(
        "/api/v1/admin/assign-client", json={"user_id": manager.id, "client_id": acme["id"]}, headers=admin_headers
    )
    assert again.status_code == 400
    client.post("/api/v1/admin/assign-team", json={"user_id": manager.id, "team_id": team["id"]}, headers=admin_headers)

    missing_team = client.post(
        "/api/v1/admin/assign-client", json={"user_id": recruiter.id, "client_id": acme["id"]}, headers=admin_headers
    )
    assert missing_team.status_code == 400
    assert client.post(
        "/api/v1/admin/assign-recruiter",
        json={"recruiter_id": recruiter.id, "team_id": team["id"], "client_ids": [acme["id"]]},
        headers=admin_headers,
    ).status_code == 200

    am_view = client.get(f"/api/v1/admin/users/{manager.id}/assignments", headers=admin_headers).json()
    assert [c["name"] for c in am_view["clients"]] == ["Acme"]
    rec_view = client.get(f"/api/v1/admin/users/{recruiter.id}/assignments", headers=admin_headers).json()
    assert rec_view["clients"][0]["team_name"] == "Alpha"
    assert rec_view["teams"][0]["name"] == "Alpha"

    client.post("/api/v1/admin/unassign-client", json={"user_id": manager.id, "client_id": acme["id"]}, headers=admin_headers)
    client.post("/api/v1/admin/unassign-team", json={"user_id": manager.id, "team_id": team["id"]}, headers=admin_headers)
    am_view = client.get(f"/api/v1/admin/users/{manager.id}/assignments", headers=admin_headers).json()
    assert am_view == {"teams": [], "clients": []}


def test_performance_stats_and_leaderboards(client, db_session, admin_headers, make_user):
    recruiter = make_user("recruiter", name="Rita")
    make_user("account_manager", name="Ana")
    team = org.create_team(db_session, "Alpha")
    org.assign_recruiter(db_session, recruiter.id, team.id, [])
    today = datetime.utcnow().date()
    create_submission(db_session, principal_for(recruiter), {"entry_type": "deal", "submission_date": today, "team_id": team.id})

    stats = client.get("/api/v1/admin/performance-stats", headers=admin_headers).json()
    by_name = {row["name"]: row for row in stats}
    assert by_name["Rita"]["ebes_score"] == 10
    assert by_name["Rita"]["performance_label"] == "Excellent"
    assert by_name["Rita"]["admin_label"] == "Needs Improvement"
    assert by_name["Rita"]["deals"] == 1
    assert by_name["Rita"]["teams"][0]["name"] == "Alpha"
    assert by_name["Ana"]["ebes_score"] == 0
    assert "Administrator" not in by_name

    only_am = client.get("/api/v1/admin/performance-stats?role=account_manager", headers=admin_headers).json()
    assert [row["name"] for row in only_am] == ["Ana"]
    by_search = client.get("/api/v1/admin/performance-stats?userName=rit", headers=admin_headers).json()
    assert [row["name"] for row in by_search] == ["Rita"]
    by_team = client.get(f"/api/v1/admin/performance-stats?teamId={team.id}", headers=admin_headers).json()
    assert [row["name"] for row in by_team] == ["Rita"]

    boards = client.get("/api/v1/admin/leaderboards", headers=admin_headers).json()
    assert boards["recruiters"][0] == {
        "user_id": recruiter.id,
        "name": "Rita",
        "team": "Alpha",
        "ebes_score": 10,
        "performance_label": "Excellent",
    }
    assert boards["account_managers"][0]["name"] == "Ana"
    assert boards["recruitment_managers"] == []


def test_scoring_settings_round_trip(client, db_session, admin_headers, make_user):
    recruiter = make_user("recruiter", name="Rita")
    create_submission(db_session, principal_for(recruiter), {"entry_type": "deal", "submission_date": datetime.utcnow().date()})

    cfg = client.get("/api/v1/settings/scoring", headers=admin_headers).json()
    assert cfg["weights"]["account_manager"]["interview_rounds"]["3"] == 0
    cfg["weights"]["recruiter"]["deal"] = 20

    res = client.put("/api/v1/settings/scoring", json=cfg, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["weights"]["recruiter"]["deal"] == 20

    stats = client.get("/api/v1/admin/performance-stats?role=recruiter", headers=admin_headers).json()
    assert stats[0]["ebes_score"] == 20

    bad = dict(cfg, thresholds={"recruiter": {"bands": [[1, "Legendary"]], "fallback": "At Risk"}})
    assert client.put("/api/v1/settings/scoring", json=bad, headers=admin_headers).status_code == 422
