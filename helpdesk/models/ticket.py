from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from helpdesk.db.base import Base
from helpdesk.models.common import TimestampMixin, utcnow


CUSTOMER_CATEGORIES: tuple[str, ...] = ("broadband", "dedicated", "reseller")
TICKET_STATUSES: tuple[str, ...] = ("New", "In Progress", "Pending", "Cancel", "Solved")
ISSUE_PRIORITIES: tuple[str, ...] = ("Low", "Medium", "High", "Critical")

STATUS_NEW = "New"
STATUS_IN_PROGRESS = "In Progress"
STATUS_PENDING = "Pending"
STATUS_CANCEL = "Cancel"
STATUS_SOLVED = "Solved"


class ComplaintTicket(TimestampMixin, Base):
    __tablename__ = "complaint_tickets"
    __table_args__ = (
        CheckConstraint("customer_category in ('broadband','dedicated','reseller')", name="customer_category"),
        CheckConstraint("issue_priority in ('Low','Medium','High','Critical')", name="issue_priority"),
        CheckConstraint("status in ('New','In Progress','Pending','Cancel','Solved')", name="status"),
        CheckConstraint("assigned_team is null or assigned_team in ('CS','TSO','NOC')", name="assigned_team"),
        Index("ix_complaint_tickets_status_created", "status", "created_at"),
        Index("ix_complaint_tickets_team_created", "assigned_team", "created_at"),
        Index("ix_complaint_tickets_customer", "customer_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_address: Mapped[str] = mapped_column(Text, nullable=False)
    customer_category: Mapped[str] = mapped_column(String(20), nullable=False)
    issue_description: Mapped[str] = mapped_column(Text, nullable=False)
    issue_priority: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=STATUS_NEW, server_default=STATUS_NEW, nullable=False)
    created_by: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    assigned_to: Mapped[int | None] = mapped_column(ForeignKey("users.id"), index=True, nullable=True)
    assigned_team: Mapped[str | None] = mapped_column(String(8), nullable=True)
    resolution_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class TicketHistory(Base):
    __tablename__ = "ticket_history"
    __table_args__ = (Index("ix_ticket_history_ticket_created", "ticket_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ticket_id: Mapped[int] = mapped_column(ForeignKey("complaint_tickets.id"), nullable=False)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    previous_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    performed_by: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
