"""Interaction logging and its effect on the lead."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from telecalling.main import app
from telecalling.models import Interaction, InteractionType, Lead, LeadStatus, utcnow
from telecalling.services import interactions as interaction_service


def log(client, headers, lead, **fields):
    payload = {"lead": str(lead.id), "type": "call", "remarks": "Discussed fees"}
    payload.update(fields)
    return client.post("/api/interactions", headers=headers, json=payload)


def test_status_after_moves_the_lead(client, db, agent, agent_headers, make_lead):
    lead = make_lead(assigned_to=agent)
    before = utcnow()

    resp = log(client, agent_headers, lead, statusAfter="admitted", duration=120)

    assert resp.status_code == 201
    body = resp.json()
    assert body["statusBefore"] == "new"
    assert body["statusAfter"] == "admitted"
    assert body["agent"] == {"id": str(agent.id), "name": agent.name, "email": agent.email}
    assert body["lead"]["phone"] == lead.phone

    db.refresh(lead)
    assert lead.status == LeadStatus.ADMITTED
    assert lead.last_follow_up >= before
    assert lead.updated_at >= before


def test_omitted_status_leaves_lead_alone(client, db, agent, agent_headers, make_lead):
    lead = make_lead(assigned_to=agent, status=LeadStatus.INTERESTED)
    updated_at = lead.updated_at

    resp = log(client, agent_headers, lead)

    assert resp.json()["statusBefore"] == "interested"
    assert resp.json()["statusAfter"] == "interested"
    db.refresh(lead)
    assert lead.status == LeadStatus.INTERESTED
    assert lead.last_follow_up is None
    assert lead.updated_at == updated_at


def test_follow_up_date_schedules_next_contact(client, db, agent, agent_headers, make_lead):
    lead = make_lead(assigned_to=agent)

    resp = log(client, agent_headers, lead, type="whatsapp", followUpDate="2030-01-15T10:30:00+05:30")

    assert resp.status_code == 201
    db.refresh(lead)
    assert lead.status == LeadStatus.NEW
    assert lead.next_follow_up.isoformat() == "2030-01-15T05:00:00"
    assert lead.last_follow_up is not None


def test_only_assignee_or_admin_may_log(client, agent, other_agent_headers, admin_headers, make_lead):
    lead = make_lead(assigned_to=agent)

    assert log(client, other_agent_headers, lead).status_code == 403
    assert log(client, admin_headers, lead).status_code == 201


def test_unknown_lead(client, agent_headers):
    resp = client.post(
        "/api/interactions",
        headers=agent_headers,
        json={"lead": "00000000-0000-0000-0000-000000000000", "type": "sms", "remarks": "hi"},
    )
    assert resp.status_code == 404


def test_type_and_remarks_are_validated(client, agent, agent_headers, make_lead):
    lead = make_lead(assigned_to=agent)

    resp = log(client, agent_headers, lead, type="fax", remarks="")

    assert resp.status_code == 400
    assert {e["param"] for e in resp.json()["errors"]} == {"type", "remarks"}


def test_failed_lead_update_rolls_back_interaction(db, agent, agent_headers, make_lead, monkeypatch):
    lead = make_lead(assigned_to=agent)

    def broken(*args, **kwargs):
        raise RuntimeError("lead write failed")

    monkeypatch.setattr(interaction_service, "apply_lead_outcome", broken)
    client = TestClient(app, raise_server_exceptions=False)

    resp = log(client, agent_headers, lead, statusAfter="interested")

    assert resp.status_code == 500
    assert resp.json() == {"msg": "Server Error"}
    assert db.query(Interaction).count() == 0
    db.refresh(lead)
    assert lead.status == LeadStatus.NEW


# =============================================================================
# Reading
# =============================================================================

def test_lead_history_newest_first(client, agent, agent_headers, other_agent_headers, make_lead, make_interaction):
    lead = make_lead(assigned_to=agent)
    old = make_interaction(lead, agent, date=utcnow() - timedelta(days=2))
    new = make_interaction(lead, agent, date=utcnow())

    resp = client.get(f"/api/interactions/lead/{lead.id}", headers=agent_headers)

    assert [i["id"] for i in resp.json()] == [str(new.id), str(old.id)]
    assert client.get(f"/api/interactions/lead/{lead.id}", headers=other_agent_headers).status_code == 403


def test_me_lists_own_interactions(client, agent, other_agent, agent_headers, make_lead, make_interaction):
    mine = make_interaction(make_lead(assigned_to=agent), agent)
    make_interaction(make_lead(assigned_to=other_agent), other_agent)

    resp = client.get("/api/interactions/me", headers=agent_headers)

    assert [i["id"] for i in resp.json()] == [str(mine.id)]


def test_list_all_is_admin_only(client, agent, admin_headers, agent_headers, make_lead, make_interaction):
    make_interaction(make_lead(assigned_to=agent), agent)

    assert len(client.get("/api/interactions", headers=admin_headers).json()) == 1
    assert client.get("/api/interactions", headers=agent_headers).status_code == 403


def test_get_single_interaction_access(client, agent, agent_headers, other_agent_headers, make_lead, make_interaction):
    interaction = make_interaction(make_lead(assigned_to=agent), agent)

    assert client.get(f"/api/interactions/{interaction.id}", headers=agent_headers).status_code == 200
    assert client.get(f"/api/interactions/{interaction.id}", headers=other_agent_headers).status_code == 403
    assert client.get("/api/interactions/nope", headers=agent_headers).status_code == 404


def test_current_assignee_cannot_read_someone_elses_interaction(
    client, agent, other_agent, agent_headers, other_agent_headers, admin_headers, make_lead, make_interaction
):
    lead = make_lead(assigned_to=other_agent)
    interaction = make_interaction(lead, agent)

    assert client.get(f"/api/interactions/{interaction.id}", headers=other_agent_headers).status_code == 403
    assert client.get(f"/api/interactions/{interaction.id}", headers=agent_headers).status_code == 200
    assert client.get(f"/api/interactions/{interaction.id}", headers=admin_headers).status_code == 200
    # The lead history stays open to the assignee
    history = client.get(f"/api/interactions/lead/{lead.id}", headers=other_agent_headers)
    assert [i["id"] for i in history.json()] == [str(interaction.id)]


# =============================================================================
# Editing & deletion
# =============================================================================

def test_update_changes_mutable_fields_and_lead(client, db, agent, agent_headers, make_lead, make_interaction):
    lead = make_lead(assigned_to=agent)
    interaction = make_interaction(lead, agent)

    resp = client.put(
        f"/api/interactions/{interaction.id}",
        headers=agent_headers,
        json={"remarks": "Will visit campus", "statusAfter": "follow_up", "type": "email"},
    )

    assert resp.status_code == 200
    assert resp.json()["remarks"] == "Will visit campus"
    assert resp.json()["type"] == "call"
    db.refresh(lead)
    assert lead.status == LeadStatus.FOLLOW_UP


def test_update_by_another_agent_is_forbidden(client, agent, other_agent, other_agent_headers, make_lead, make_interaction):
    interaction = make_interaction(make_lead(assigned_to=agent), agent)

    resp = client.put(f"/api/interactions/{interaction.id}", headers=other_agent_headers, json={"remarks": "x"})

    assert resp.status_code == 403


def test_delete_keeps_lead_changes(client, db, agent, agent_headers, admin_headers, make_lead):
    lead = make_lead(assigned_to=agent)
    created = log(client, agent_headers, lead, statusAfter="admitted").json()

    assert client.delete(f"/api/interactions/{created['id']}", headers=agent_headers).status_code == 403
    resp = client.delete(f"/api/interactions/{created['id']}", headers=admin_headers)

    assert resp.json() == {"msg": "Interaction removed"}
    db.expire_all()
    assert db.query(Interaction).count() == 0
    assert db.get(Lead, lead.id).status == LeadStatus.ADMITTED


# =============================================================================
# Statistics
# =============================================================================

def test_my_stats_returns_five_latest(client, agent, agent_headers, make_lead, make_interaction):
    lead = make_lead(assigned_to=agent)
    for days in range(7):
        make_interaction(lead, agent, date=utcnow() - timedelta(days=days))

    resp = client.get("/api/interactions/stats", headers=agent_headers)

    assert len(resp.json()["recentInteractions"]) == 5


@pytest.mark.parametrize("path", ["/api/interactions/stats/overall", "/api/interactions/stats/agent/{agent_id}"])
def test_stats_counts_by_type_and_outcome(client, agent, other_agent, admin_headers, make_lead, make_interaction, path):
    lead = make_lead(assigned_to=agent)
    make_interaction(lead, agent, type=InteractionType.SMS, status_after=LeadStatus.INTERESTED)
    make_interaction(lead, agent, type=InteractionType.CALL, status_after=LeadStatus.ADMITTED)
    make_interaction(lead, agent, type=InteractionType.CALL, status_after=LeadStatus.NEW)

    resp = client.get(path.format(agent_id=agent.id), headers=admin_headers)

    body = resp.json()
    assert body["totalInteractions"] == 3
    assert body["interactionsByType"] == {"call": 2, "sms": 1, "whatsapp": 0, "email": 0}
    assert body["conversions"] == {"interested": 1, "notInterested": 0, "followUp": 0, "admitted": 1}


def test_agent_stats_for_unknown_agent(client, admin_headers):
    resp = client.get("/api/interactions/stats/agent/00000000-0000-0000-0000-000000000000", headers=admin_headers)
    assert resp.status_code == 404
