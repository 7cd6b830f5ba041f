from datetime import datetime, timezone

import pytest

from helpdesk.core.errors import NotFoundError
from helpdesk.services.dashboard import get_dashboard_metrics, get_user_dashboard, today_window


NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


def _at(day: int, hour: int = 0) -> datetime:
    return datetime(2024, 1, day, hour, 0, tzinfo=timezone.utc)


@pytest.fixture
async def seeded(make_user, make_ticket):
    cs = await make_user("cs_agent")
    tso = await make_user("tso_agent", role="TSO")

    await make_ticket(cs.id, created_at=_at(8), issue_priority="High")
    await make_ticket(
        cs.id,
        created_at=_at(5),
        issue_priority="Critical",
        status="Solved",
        assigned_to=tso.id,
        assigned_team="TSO",
        resolved_at=_at(5, 10),
    )
    await make_ticket(cs.id, created_at=_at(10, 9), issue_priority="Low", status="In Progress", assigned_team="NOC")
    await make_ticket(
        cs.id,
        created_at=_at(10, 6),
        issue_priority="Critical",
        status="Pending",
        assigned_to=tso.id,
        assigned_team="TSO",
    )
    await make_ticket(
        cs.id,
        created_at=_at(9, 12),
        status="Solved",
        assigned_to=tso.id,
        assigned_team="TSO",
        resolved_at=_at(10, 8),
    )
    return cs, tso


async def test_dashboard_metrics(db, seeded) -> None:
    metrics = await get_dashboard_metrics(db, now=NOW)

    assert metrics.total_tickets == 5
    assert metrics.tickets_by_status == {"New": 1, "In Progress": 1, "Pending": 1, "Cancel": 0, "Solved": 2}
    assert metrics.tickets_by_team == {"CS": 0, "TSO": 3, "NOC": 1}
    assert metrics.unassigned_tickets == 2
    assert metrics.overdue_priority_tickets == 1
    assert metrics.average_resolution_time == 15.0
    assert metrics.today_created == 2
    assert metrics.today_resolved == 1


async def test_dashboard_metrics_empty(db) -> None:
    metrics = await get_dashboard_metrics(db, now=NOW)
    assert metrics.total_tickets == 0
    assert set(metrics.tickets_by_status.values()) == {0}
    assert metrics.average_resolution_time == 0.0


async def test_user_dashboard(db, seeded) -> None:
    _, tso = seeded
    board = await get_user_dashboard(db, tso.id)

    assert board.user.username == "tso_agent"
    assert board.user.role == "TSO"
    assert board.personal_metrics.assigned_tickets == 3
    assert board.personal_metrics.tickets_in_progress == 0
    assert board.personal_metrics.tickets_resolved == 2
    assert board.personal_metrics.average_resolution_time == 15.0
    assert [t.status for t in board.recent_tickets] == ["Pending", "Solved", "Solved"]


async def test_user_dashboard_without_tickets(db, seeded) -> None:
    cs, _ = seeded
    board = await get_user_dashboard(db, cs.id)
    assert board.personal_metrics.assigned_tickets == 0
    assert board.personal_metrics.average_resolution_time == 0.0
    assert board.recent_tickets == []


async def test_user_dashboard_missing_user(db) -> None:
    with pytest.raises(NotFoundError):
        await get_user_dashboard(db, 404)


def test_today_window_follows_report_timezone() -> None:
    start, end = today_window(datetime(2024, 1, 10, 2, 0, tzinfo=timezone.utc), "America/New_York")
    assert start == datetime(2024, 1, 9, 5, 0, tzinfo=timezone.utc)
    assert end == datetime(2024, 1, 10, 5, 0, tzinfo=timezone.utc)
