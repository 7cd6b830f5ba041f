import pytest

from helpdesk.core.errors import InvalidArgumentError, InvalidAssignmentError, NotFoundError
from helpdesk.schemas.ticket import ComplaintTicketCreateIn
from helpdesk.services.history import get_ticket_history
from helpdesk.services.tickets import (
    assign_ticket,
    create_complaint_ticket,
    encode_assignment,
    get_complaint_ticket_by_id,
    transfer_ticket_to_team,
)


async def _ticket(db, creator_id: int):
    payload = ComplaintTicketCreateIn(
        customer_id="CUST-100",
        customer_name="Globex",
        customer_address="42 Side Road",
        customer_category="dedicated",
        issue_description="Packet loss on uplink",
        issue_priority="Critical",
    )
    return await create_complaint_ticket(db, payload, created_by=creator_id)


def test_encode_assignment() -> None:
    assert encode_assignment(7, "TSO") == "User ID: 7, Team: TSO"
    assert encode_assignment(None, "NOC") == "Team: NOC"
    assert encode_assignment(None, None) is None


async def test_reassign_from_tso_user_to_noc_user(db, make_user) -> None:
    cs = await make_user("cs_agent")
    tso = await make_user("tso_agent", role="TSO")
    noc = await make_user("noc_agent", role="NOC")
    ticket = await _ticket(db, cs.id)

    first = await assign_ticket(db, ticket.id, tso.id, "TSO", assigned_by=cs.id)
    assert first.assigned_to == tso.id
    assert first.assigned_team == "TSO"

    second = await assign_ticket(db, ticket.id, noc.id, "NOC", assigned_by=cs.id)
    assert second.assigned_to == noc.id
    assert second.assigned_team == "NOC"

    latest = (await get_ticket_history(db, ticket.id))[0]
    assert latest.action == "assigned_to_user"
    assert latest.previous_value == f"User ID: {tso.id}, Team: TSO"
    assert latest.new_value == f"User ID: {noc.id}, Team: NOC"
    assert latest.notes == f"Ticket assigned to user {noc.id} in NOC team"


async def test_assign_team_only(db, make_user) -> None:
    cs = await make_user("cs_agent")
    ticket = await _ticket(db, cs.id)

    assigned = await assign_ticket(db, ticket.id, None, "NOC", assigned_by=cs.id)
    assert assigned.assigned_to is None
    assert assigned.assigned_team == "NOC"

    latest = (await get_ticket_history(db, ticket.id))[0]
    assert latest.action == "assigned_to_team"
    assert latest.previous_value is None
    assert latest.new_value == "Team: NOC"
    assert latest.notes == "Ticket assigned to NOC team"


async def test_assign_rejects_role_mismatch(db, make_user) -> None:
    cs = await make_user("cs_agent")
    tso = await make_user("tso_agent", role="TSO")
    ticket = await _ticket(db, cs.id)

    with pytest.raises(InvalidAssignmentError):
        await assign_ticket(db, ticket.id, tso.id, "NOC", assigned_by=cs.id)

    unchanged = await get_complaint_ticket_by_id(db, ticket.id)
    assert unchanged.assigned_to is None
    assert unchanged.assigned_team is None
    assert [h.action for h in await get_ticket_history(db, ticket.id)] == ["created"]


async def test_assign_rejects_inactive_assignee(db, make_user) -> None:
    cs = await make_user("cs_agent")
    retired = await make_user("retired_tso", role="TSO", is_active=False)
    ticket = await _ticket(db, cs.id)

    with pytest.raises(InvalidAssignmentError):
        await assign_ticket(db, ticket.id, retired.id, "TSO", assigned_by=cs.id)


async def test_assign_missing_ticket_or_assigner(db, make_user) -> None:
    cs = await make_user("cs_agent")
    ticket = await _ticket(db, cs.id)

    with pytest.raises(NotFoundError):
        await assign_ticket(db, 999, None, "CS", assigned_by=cs.id)
    with pytest.raises(NotFoundError):
        await assign_ticket(db, ticket.id, None, "CS", assigned_by=999)


async def test_transfer_clears_assignee(db, make_user) -> None:
    cs = await make_user("cs_agent")
    tso = await make_user("tso_agent", role="TSO")
    ticket = await _ticket(db, cs.id)
    await assign_ticket(db, ticket.id, tso.id, "TSO", assigned_by=cs.id)

    moved = await transfer_ticket_to_team(db, ticket.id, "NOC", transferred_by=cs.id)
    assert moved.assigned_to is None
    assert moved.assigned_team == "NOC"

    latest = (await get_ticket_history(db, ticket.id))[0]
    assert latest.action == "transferred_to_team"
    assert latest.previous_value == f"User ID: {tso.id}, Team: TSO"
    assert latest.new_value == "Team: NOC"
    assert latest.notes == "Ticket transferred to NOC team"


async def test_transfer_unassigned_ticket(db, make_user) -> None:
    cs = await make_user("cs_agent")
    ticket = await _ticket(db, cs.id)

    await transfer_ticket_to_team(db, ticket.id, "TSO", transferred_by=cs.id)
    latest = (await get_ticket_history(db, ticket.id))[0]
    assert latest.previous_value == "Unassigned"


async def test_transfer_validates_team_first(db) -> None:
    with pytest.raises(InvalidArgumentError):
        await transfer_ticket_to_team(db, 999, "SALES", transferred_by=999)
    with pytest.raises(NotFoundError):
        await transfer_ticket_to_team(db, 999, "NOC", transferred_by=999)


async def test_assign_and_transfer_advance_updated_at(db, make_user) -> None:
    cs = await make_user("cs_agent")
    tso = await make_user("tso_agent", role="TSO")
    ticket = await _ticket(db, cs.id)
    created = ticket.updated_at

    assigned = await assign_ticket(db, ticket.id, tso.id, "TSO", assigned_by=cs.id)
    after_assign = assigned.updated_at
    assert after_assign > created

    transferred = await transfer_ticket_to_team(db, ticket.id, "NOC", transferred_by=cs.id)
    assert transferred.updated_at > after_assign


async def test_failed_assignment_keeps_previous_assignment(db, make_user, monkeypatch) -> None:
    cs = await make_user("cs_agent")
    tso = await make_user("tso_agent", role="TSO")
    ticket = await _ticket(db, cs.id)
    await assign_ticket(db, ticket.id, tso.id, "TSO", assigned_by=cs.id)
    ticket_id, cs_id, tso_id = ticket.id, cs.id, tso.id

    def broken_history(*args, **kwargs):
        raise RuntimeError("history unavailable")

    monkeypatch.setattr("helpdesk.services.tickets.append_history", broken_history)
    with pytest.raises(RuntimeError):
        await assign_ticket(db, ticket_id, None, "CS", assigned_by=cs_id)
    with pytest.raises(RuntimeError):
        await transfer_ticket_to_team(db, ticket_id, "NOC", transferred_by=cs_id)
    await db.commit()

    stored = await get_complaint_ticket_by_id(db, ticket_id)
    assert stored.assigned_team == "TSO"
    assert stored.assigned_to == tso_id
    actions = [h.action for h in await get_ticket_history(db, ticket_id)]
    assert actions == ["assigned_to_user", "created"]
