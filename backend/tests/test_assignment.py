"""Single and bulk assignment, plus the access rule behind them."""

import uuid
from datetime import datetime

import pytest

from telecalling.core.auth import RequestContext
from telecalling.models import Lead, UserRole
from telecalling.services.assignment import assign_lead, bulk_assign, can_access_lead


def ctx_for(user):
    return RequestContext(user_id=user.id, role=user.role, user=user)


# =============================================================================
# Access rule
# =============================================================================

def test_admin_can_access_any_lead(admin, agent, make_lead):
    assert can_access_lead(ctx_for(admin), make_lead(assigned_to=agent))
    assert can_access_lead(ctx_for(admin), make_lead())


def test_staff_access_requires_assignment(agent, other_agent, make_lead):
    mine = make_lead(assigned_to=agent)
    unassigned = make_lead()

    assert can_access_lead(ctx_for(agent), mine)
    assert not can_access_lead(ctx_for(other_agent), mine)
    assert not can_access_lead(ctx_for(agent), unassigned)


def test_assign_lead_refuses_admin(admin, make_lead):
    with pytest.raises(ValueError):
        assign_lead(make_lead(), admin)


def test_bulk_assign_requires_lead_role(db, agent, make_lead):
    with pytest.raises(ValueError):
        bulk_assign(db, agent, [make_lead().id])


# =============================================================================
# PUT /assign/{id}
# =============================================================================

def test_assign_to_agent(client, db, agent, admin_headers, make_lead):
    lead = make_lead()

    resp = client.put(f"/api/leads/assign/{lead.id}", headers=admin_headers, json={"assignedTo": str(agent.id)})

    assert resp.status_code == 200
    assert resp.json()["assignedTo"]["id"] == str(agent.id)
    db.refresh(lead)
    assert lead.assigned_to == agent.id


def test_assign_rejects_non_agent_target(client, lead_user, admin, admin_headers, make_lead):
    lead = make_lead()

    to_lead_role = client.put(
        f"/api/leads/assign/{lead.id}", headers=admin_headers, json={"assignedTo": str(lead_user.id)}
    )
    to_admin = client.put(f"/api/leads/assign/{lead.id}", headers=admin_headers, json={"assignedTo": str(admin.id)})
    to_nobody = client.put(
        f"/api/leads/assign/{lead.id}", headers=admin_headers, json={"assignedTo": str(uuid.uuid4())}
    )

    assert to_lead_role.status_code == to_admin.status_code == to_nobody.status_code == 400
    assert to_admin.json()["errors"][0]["msg"] == "Invalid agent ID"


def test_assign_null_unassigns(client, db, agent, admin_headers, make_lead):
    lead = make_lead(assigned_to=agent)

    resp = client.put(f"/api/leads/assign/{lead.id}", headers=admin_headers, json={"assignedTo": None})

    assert resp.status_code == 200
    db.refresh(lead)
    assert lead.assigned_to is None


def test_assign_is_admin_only(client, agent, agent_headers, make_lead):
    lead = make_lead(assigned_to=agent)
    resp = client.put(f"/api/leads/assign/{lead.id}", headers=agent_headers, json={"assignedTo": str(agent.id)})
    assert resp.status_code == 403


# =============================================================================
# POST /assign-to-lead
# =============================================================================

def test_bulk_assign_skips_missing_ids(client, db, lead_user, admin_headers, make_lead):
    lead = make_lead()
    missing = uuid.uuid4()

    resp = client.post(
        "/api/leads/assign-to-lead",
        headers=admin_headers,
        json={"leadUserId": str(lead_user.id), "leadIds": [str(lead.id), str(missing)]},
    )

    assert resp.status_code == 200
    assert resp.json()["requested"] == 2
    assert resp.json()["updated"] == 1
    db.refresh(lead)
    assert lead.assigned_to == lead_user.id
    assert db.get(Lead, missing) is None


def test_bulk_assign_bumps_updated_at(client, db, lead_user, admin_headers, make_lead):
    lead = make_lead(updated_at=datetime(2026, 1, 1))

    client.post(
        "/api/leads/assign-to-lead",
        headers=admin_headers,
        json={"leadUserId": str(lead_user.id), "leadIds": [str(lead.id)]},
    )

    db.refresh(lead)
    assert lead.updated_at > datetime(2026, 1, 1)


def test_bulk_assign_rejects_agent_target(client, agent, admin_headers, make_lead):
    resp = client.post(
        "/api/leads/assign-to-lead",
        headers=admin_headers,
        json={"leadUserId": str(agent.id), "leadIds": [str(make_lead().id)]},
    )

    assert resp.status_code == 400
    assert resp.json()["errors"][0]["param"] == "leadUserId"


def test_bulk_assign_requires_ids(client, lead_user, admin_headers):
    resp = client.post(
        "/api/leads/assign-to-lead",
        headers=admin_headers,
        json={"leadUserId": str(lead_user.id), "leadIds": []},
    )
    assert resp.status_code == 400


def test_assigned_leads_never_point_at_admin(client, db, admin, agent, lead_user, admin_headers, make_lead):
    leads = [make_lead() for _ in range(3)]
    client.put(f"/api/leads/assign/{leads[0].id}", headers=admin_headers, json={"assignedTo": str(admin.id)})
    client.post(
        "/api/leads/assign-to-lead",
        headers=admin_headers,
        json={"leadUserId": str(admin.id), "leadIds": [str(lead.id) for lead in leads]},
    )

    db.expire_all()
    holders = {lead.assignee.role for lead in db.query(Lead).all() if lead.assignee}
    assert UserRole.ADMIN not in holders
