from __future__ import annotations
from datetime import datetime

import pytest

from ebes.models.role import Role, RoleInterview
from ebes.services import org


@pytest.fixture()
def am_setup(db_session, make_user, auth_headers):
    manager = make_user("account_manager")
    acme = org.create_client(db_session, "Acme")
    team = org.create_team(db_session, "Alpha")
    org.assign_client(db_session, manager.id, acme.id)
    org.assign_team(db_session, manager.id, team.id)
    return manager, acme, team, auth_headers(manager)


def test_assignments(client, am_setup):
    _, acme, team, headers = am_setup
    body = client.get("/api/v1/am/assignments", headers=headers).json()
    assert [c["name"] for c in body["clients"]] == ["Acme"]
    assert body["teams"][0]["team_code"] == "TM-0001"


def test_role_lifecycle(client, db_session, am_setup):
    _, acme, team, headers = am_setup

    res = client.post(
        "/api/v1/am/roles",
        json={"client_id": acme.id, "team_id": team.id, "title": "Backend Engineer"},
        headers=headers,
    )
    assert res.status_code == 200
    role_id = res.json()["id"]
    assert res.json()["role_code"] == "ROLE-0001"

    assert client.post(
        f"/api/v1/am/roles/{role_id}/interviews", json={"interview_round": 1, "interview_count": 3}, headers=headers
    ).status_code == 200
    client.post(f"/api/v1/am/roles/{role_id}/interviews", json={"interview_round": 2}, headers=headers)

    roles = client.get("/api/v1/am/roles", headers=headers).json()
    assert roles[0]["client_name"] == "Acme"
    assert roles[0]["interview_1_count"] == 3
    assert roles[0]["interview_2_count"] == 1
    assert roles[0]["total_interviews"] == 4

    assert client.put(f"/api/v1/am/roles/{role_id}", json={"status": "on_hold"}, headers=headers).status_code == 200
    assert client.get("/api/v1/am/roles?status=active", headers=headers).json() == []
    assert len(client.get("/api/v1/am/roles?status=non-active", headers=headers).json()) == 1

    assert client.put(f"/api/v1/am/roles/{role_id}", json={}, headers=headers).status_code == 400
    assert client.put(f"/api/v1/am/roles/{role_id}", json={"status": "archived"}, headers=headers).status_code == 422

    assert client.delete(f"/api/v1/am/roles/{role_id}", headers=headers).status_code == 200
    assert db_session.query(RoleInterview).count() == 0


def test_other_managers_roles_are_not_found(client, db_session, am_setup, make_user, auth_headers):
    _, acme, team, headers = am_setup
    role_id = client.post(
        "/api/v1/am/roles", json={"client_id": acme.id, "team_id": team.id, "title": "QA"}, headers=headers
    ).json()["id"]

    intruder = auth_headers(make_user("account_manager"))
    res = client.put(f"/api/v1/am/roles/{role_id}", json={"title": "Mine now"}, headers=intruder)
    assert res.status_code == 404
    assert res.json() == {"detail": "Role not found"}


def test_active_role_limit(client, db_session, am_setup):
    manager, acme, team, headers = am_setup
    for i in range(30):
        db_session.add(Role(client_id=acme.id, team_id=team.id, account_manager_id=manager.id, title=f"Role {i}"))
    db_session.commit()

    res = client.post(
        "/api/v1/am/roles", json={"client_id": acme.id, "team_id": team.id, "title": "One too many"}, headers=headers
    )
    assert res.status_code == 400
    assert "30 active roles" in res.json()["detail"]


def test_create_role_for_unknown_client(client, am_setup):
    _, _, team, headers = am_setup
    res = client.post("/api/v1/am/roles", json={"client_id": 999, "team_id": team.id, "title": "X"}, headers=headers)
    assert res.status_code == 404


def test_reminder_confirm_is_idempotent(client, am_setup):
    _, _, _, headers = am_setup
    status = client.get("/api/v1/am/reminder-status", headers=headers).json()
    assert status["should_show"] is True
    assert status["current_month"] == datetime.utcnow().strftime("%Y-%m")

    assert client.post("/api/v1/am/confirm-reminder", headers=headers).status_code == 200
    assert client.post("/api/v1/am/confirm-reminder", headers=headers).status_code == 200
    assert client.get("/api/v1/am/reminder-status", headers=headers).json()["should_show"] is False


def test_ebes_score_and_performance(client, am_setup):
    _, acme, team, headers = am_setup
    ids = [
        client.post(
            "/api/v1/am/roles", json={"client_id": acme.id, "team_id": team.id, "title": f"Role {i}"}, headers=headers
        ).json()["id"]
        for i in range(10)
    ]
    client.post(f"/api/v1/am/roles/{ids[0]}/interviews", json={"interview_round": 1, "interview_count": 4}, headers=headers)
    client.post(f"/api/v1/am/roles/{ids[1]}/interviews", json={"interview_round": 2, "interview_count": 2}, headers=headers)
    client.post(f"/api/v1/am/roles/{ids[1]}/interviews", json={"interview_round": 3, "interview_count": 6}, headers=headers)
    client.put(f"/api/v1/am/roles/{ids[2]}", json={"status": "deal"}, headers=headers)
    for role_id in ids[3:6]:
        client.put(f"/api/v1/am/roles/{role_id}", json={"status": "lost"}, headers=headers)
    client.put(f"/api/v1/am/roles/{ids[6]}", json={"status": "no_answer"}, headers=headers)
    for role_id in ids[7:9]:
        client.put(f"/api/v1/am/roles/{role_id}", json={"status": "on_hold"}, headers=headers)

    score = client.get("/api/v1/am/ebes-score", headers=headers).json()
    assert score["score"] == 26
    assert score["performance_label"] == "Average"
    assert score["interview_3"] == 6

    this_month = client.get("/api/v1/am/ebes-score?date_range=this_month", headers=headers).json()
    assert this_month["score"] == 26

    perf = client.get("/api/v1/am/performance", headers=headers).json()
    overview = perf["overview"]
    assert overview["total_roles"] == 10
    assert overview["active_roles"] == 3
    assert overview["ebes_score"] == 26
    assert overview["current_month"]["roles"] == 10
    assert overview["growth"]["roles"] == "+100%"
    assert overview["growth"]["lost"] == "+100%"
    assert perf["client_performance"][0]["deals"] == 1
    assert perf["team_performance"][0]["total_interviews"] == 12


def test_client_analytics(client, am_setup):
    _, acme, team, headers = am_setup
    role_id = client.post(
        "/api/v1/am/roles", json={"client_id": acme.id, "team_id": team.id, "title": "Data"}, headers=headers
    ).json()["id"]
    client.post(f"/api/v1/am/roles/{role_id}/interviews", json={"interview_round": 1, "interview_count": 4}, headers=headers)
    client.post(f"/api/v1/am/roles/{role_id}/interviews", json={"interview_round": 2, "interview_count": 1}, headers=headers)

    body = client.get("/api/v1/am/analytics", headers=headers).json()
    stats = body["clients"][0]
    assert stats["client_name"] == "Acme"
    assert stats["total_roles"] == 1
    assert stats["stage_1_to_2_dropoff"] == 75.0
    assert stats["stage_2_to_3_dropoff"] == 100.0
    assert stats["roles_to_deal_conversion"] == 0
    assert stats["health_score"] == 35
    assert stats["health_tag"] == "At Risk Account"
    assert body["summary"]["total_clients"] == 1
    assert client.get("/api/v1/am/client-analytics", headers=headers).json() == body


def test_client_health_score_rounds_half_up(client, am_setup):
    _, acme, team, headers = am_setup
    role_ids = [
        client.post(
            "/api/v1/am/roles", json={"client_id": acme.id, "team_id": team.id, "title": f"Role {n}"}, headers=headers
        ).json()["id"]
        for n in range(4)
    ]
    client.post(f"/api/v1/am/roles/{role_ids[0]}/interviews", json={"interview_round": 1}, headers=headers)
    client.put(f"/api/v1/am/roles/{role_ids[0]}", json={"status": "deal"}, headers=headers)

    stats = client.get("/api/v1/am/analytics", headers=headers).json()["clients"][0]
    # 20 for roles, 7.5 for the deal share, 15 for interviews, 20 for conversion, 10 for month-over-month deals
    assert stats["health_score"] == 73
    assert stats["health_tag"] == "Strong Account"
