from __future__ import annotations
from datetime import datetime

import pytest

from ebes.models.role import Role, RoleStatusPending
from ebes.models.submission import Submission
from ebes.services import org
from ebes.services.account_manager import create_role
from ebes.services.users import principal_for

TODAY = datetime.utcnow().date().isoformat()


@pytest.fixture()
def team_setup(db_session, make_user):
    recruiter = make_user("recruiter", name="Rita Recruiter")
    manager = make_user("account_manager")
    lead = make_user("recruitment_manager")
    acme = org.create_client(db_session, "Acme")
    team = org.create_team(db_session, "Alpha")
    org.assign_team(db_session, lead.id, team.id)
    org.assign_recruiter(db_session, recruiter.id, team.id, [acme.id])
    return {"recruiter": recruiter, "am": manager, "rm": lead, "client": acme, "team": team}


def _role(db, setup, title="Backend Engineer"):
    created = create_role(db, principal_for(setup["am"]), setup["client"].id, setup["team"].id, title)
    return created["id"]


def _submit(client, headers, **body):
    res = client.post("/api/v1/recruiter/submissions", json={"submission_date": TODAY, **body}, headers=headers)
    assert res.status_code == 200, res.text
    return res


def test_clients_roles_and_team_info(client, db_session, team_setup, auth_headers):
    headers = auth_headers(team_setup["recruiter"])
    role_id = _role(db_session, team_setup)
    acme, team = team_setup["client"], team_setup["team"]

    clients = client.get("/api/v1/recruiter/clients", headers=headers).json()
    assert [(c["name"], c["team_name"]) for c in clients] == [("Acme", "Alpha")]

    roles = client.get(f"/api/v1/recruiter/roles/{acme.id}/{team.id}", headers=headers).json()
    assert roles[0]["id"] == role_id
    assert roles[0]["account_manager_name"] == team_setup["am"].name

    info = client.get("/api/v1/recruiter/team-info", headers=headers).json()
    assert info["team"]["name"] == "Alpha"
    assert info["recruitment_manager"]["id"] == team_setup["rm"].id


def test_team_info_without_team(client, make_user, auth_headers):
    loner = make_user("recruiter")
    assert client.get("/api/v1/recruiter/team-info", headers=auth_headers(loner)).status_code == 404


def test_submissions_and_recruiter_score(client, db_session, team_setup, auth_headers):
    headers = auth_headers(team_setup["recruiter"])
    role_id = _role(db_session, team_setup)

    _submit(client, headers, role_id=role_id, submission_type="6h")
    _submit(client, headers, role_id=role_id, submission_type="6h")
    _submit(client, headers, role_id=role_id, submission_type="24h")
    _submit(client, headers, role_id=role_id, entry_type="interview", interview_level=1)
    _submit(client, headers, role_id=role_id, entry_type="deal")

    role = db_session.get(Role, role_id)
    db_session.refresh(role)
    assert role.status == "deal"
    deal = db_session.query(Submission).filter(Submission.entry_type == "deal").one()
    assert deal.account_manager_id == team_setup["am"].id
    assert deal.recruitment_manager_id == team_setup["rm"].id
    assert deal.client_id == team_setup["client"].id

    listing = client.get("/api/v1/recruiter/submissions", headers=headers).json()
    assert listing["stats"] == {
        "total": 5,
        "submission_6h": 2,
        "submission_24h": 1,
        "submission_after_24h": 0,
        "interviews": 1,
        "deals": 1,
        "dropouts": 0,
    }
    assert listing["submissions"][0]["role_title"] == "Backend Engineer"

    ebes = client.get("/api/v1/recruiter/ebes", headers=headers).json()
    assert ebes["score"] == 5.0
    assert ebes["performance_label"] == "Excellent"
    assert ebes["breakdown"]["total_points"] == 25

    monthly = client.get("/api/v1/recruiter/ebes-score", headers=headers).json()
    assert monthly == {"score": 5.0, "performance_label": "Excellent"}
    assert client.get("/api/v1/recruiter/ebes-score?filter=last_month", headers=headers).json()["score"] == 0

    analytics = client.get("/api/v1/recruiter/analytics", headers=headers).json()
    assert analytics["total_submissions"] == 3
    assert analytics["interview_1"] == 1
    assert analytics["total_deals"] == 1
    assert analytics["client_breakdown"] == [{"client_name": "Acme", "count": 5}]
    assert analytics["daily_trend"] == [{"date": TODAY, "count": 5}]

    assert [r["id"] for r in client.get("/api/v1/recruiter/deal-roles", headers=headers).json()] == [role_id]
    assert client.get("/api/v1/recruiter/all-roles", headers=headers).json()[0]["title"] == "Backend Engineer"


def test_dropout_opens_request_for_account_manager(client, db_session, team_setup, auth_headers):
    headers = auth_headers(team_setup["recruiter"])
    am_headers = auth_headers(team_setup["am"])
    role_id = _role(db_session, team_setup)
    _submit(client, headers, role_id=role_id, entry_type="deal")

    _submit(client, headers, entry_type="dropout", dropout_role_id=role_id)

    pending = db_session.query(RoleStatusPending).one()
    assert pending.previous_status == "deal"
    assert pending.reason == "Dropout - Candidate refused offer"

    requests = client.get("/api/v1/am/dropout-requests", headers=am_headers).json()
    assert requests[0]["role_id"] == role_id
    assert requests[0]["recruiter_name"] == "Rita Recruiter"

    res = client.post(
        f"/api/v1/am/dropout-requests/{pending.id}/resolve", json={"status": "active"}, headers=am_headers
    )
    assert res.status_code == 200
    role = db_session.get(Role, role_id)
    db_session.refresh(role)
    assert role.status == "active"
    assert client.get("/api/v1/am/dropout-requests", headers=am_headers).json() == []
    assert client.post(
        f"/api/v1/am/dropout-requests/{pending.id}/resolve", json={"status": "lost"}, headers=am_headers
    ).status_code == 400


def test_unknown_role_is_404(client, team_setup, auth_headers):
    headers = auth_headers(team_setup["recruiter"])
    res = client.post(
        "/api/v1/recruiter/submissions",
        json={"submission_date": TODAY, "role_id": 999, "entry_type": "deal"},
        headers=headers,
    )
    assert res.status_code == 404


def test_invalid_submission_is_422(client, team_setup, auth_headers):
    headers = auth_headers(team_setup["recruiter"])
    res = client.post(
        "/api/v1/recruiter/submissions",
        json={"submission_date": TODAY, "entry_type": "interview", "interview_level": 4},
        headers=headers,
    )
    assert res.status_code == 422


def test_recruitment_manager_views(client, db_session, team_setup, auth_headers):
    rm_headers = auth_headers(team_setup["rm"])
    headers = auth_headers(team_setup["recruiter"])
    acme, team, manager = team_setup["client"], team_setup["team"], team_setup["am"]
    for i, status in enumerate(["active", "active", "lost", "lost", "lost"]):
        db_session.add(Role(client_id=acme.id, team_id=team.id, account_manager_id=manager.id, title=f"R{i}", status=status))
    db_session.commit()
    scope = {"client_id": acme.id, "team_id": team.id}
    _submit(client, headers, submission_type="6h", **scope)
    _submit(client, headers, submission_type="6h", **scope)
    _submit(client, headers, entry_type="interview", interview_level=2, **scope)
    _submit(client, headers, entry_type="deal", **scope)

    score = client.get("/api/v1/rm/ebes-score", headers=rm_headers).json()
    assert score["score"] == 82.4
    assert score["performance_label"] == "Strong"
    assert score["total_submissions"] == 4

    assert [t["name"] for t in client.get("/api/v1/rm/teams", headers=rm_headers).json()] == ["Alpha"]
    recruiters = client.get("/api/v1/rm/recruiters", headers=rm_headers).json()
    assert [(r["name"], r["team_name"]) for r in recruiters] == [("Rita Recruiter", "Alpha")]
    assert len(client.get("/api/v1/rm/roles", headers=rm_headers).json()) == 5
    assert len(client.get("/api/v1/rm/roles?status=active", headers=rm_headers).json()) == 2

    analytics = client.get("/api/v1/rm/analytics", headers=rm_headers).json()
    assert analytics["total_teams"] == 1
    assert analytics["total_active_roles"] == 2
    assert analytics["total_lost"] == 3
    assert analytics["recruiter_breakdown"][0]["total_submissions"] == 4
    assert analytics["recruiter_breakdown"][0]["deals"] == 1

    team_stats = client.get(f"/api/v1/rm/team-analytics/{team.id}", headers=rm_headers).json()
    assert team_stats["team_stats"]["submission_6h"] == 2
    assert team_stats["team_stats"]["total_recruiters"] == 1
    assert client.get("/api/v1/rm/team-analytics/999", headers=rm_headers).status_code == 404

    summary = client.get("/api/v1/rm/performance-summary", headers=rm_headers).json()
    assert summary["total_submissions"] == 4
    assert summary["total_recruiters"] == 1


def test_recruitment_manager_without_teams(client, make_user, auth_headers):
    lead = make_user("recruitment_manager")
    score = client.get("/api/v1/rm/ebes-score", headers=auth_headers(lead)).json()
    assert score["score"] == 0
    assert score["performance_label"] == "At Risk"
