"""users, complaint tickets and ticket history

Revision ID: 0001_initial
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=8), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("role in ('CS','TSO','NOC')", name="ck_users_role"),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_role", "users", ["role"], unique=False)

    op.create_table(
        "complaint_tickets",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.String(length=100), nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_address", sa.Text(), nullable=False),
        sa.Column("customer_category", sa.String(length=20), nullable=False),
        sa.Column("issue_description", sa.Text(), nullable=False),
        sa.Column("issue_priority", sa.String(length=10), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default=sa.text("'New'")),
        sa.Column("created_by", sa.Integer(), nullable=False),
        sa.Column("assigned_to", sa.Integer(), nullable=True),
        sa.Column("assigned_team", sa.String(length=8), nullable=True),
        sa.Column("resolution_notes", sa.Text(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "customer_category in ('broadband','dedicated','reseller')",
            name="ck_complaint_tickets_customer_category",
        ),
        sa.CheckConstraint(
            "issue_priority in ('Low','Medium','High','Critical')",
            name="ck_complaint_tickets_issue_priority",
        ),
        sa.CheckConstraint(
            "status in ('New','In Progress','Pending','Cancel','Solved')",
            name="ck_complaint_tickets_status",
        ),
        sa.CheckConstraint(
            "assigned_team is null or assigned_team in ('CS','TSO','NOC')",
            name="ck_complaint_tickets_assigned_team",
        ),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], name="fk_complaint_tickets_created_by_users"),
        sa.ForeignKeyConstraint(["assigned_to"], ["users.id"], name="fk_complaint_tickets_assigned_to_users"),
        sa.PrimaryKeyConstraint("id", name="pk_complaint_tickets"),
    )
    op.create_index("ix_complaint_tickets_created_by", "complaint_tickets", ["created_by"], unique=False)
    op.create_index("ix_complaint_tickets_assigned_to", "complaint_tickets", ["assigned_to"], unique=False)
    op.create_index(
        "ix_complaint_tickets_status_created",
        "complaint_tickets",
        ["status", "created_at"],
        unique=False,
    )
    op.create_index(
        "ix_complaint_tickets_team_created",
        "complaint_tickets",
        ["assigned_team", "created_at"],
        unique=False,
    )
    op.create_index(
        "ix_complaint_tickets_customer",
        "complaint_tickets",
        ["customer_id", "created_at"],
        unique=False,
    )

    op.create_table(
        "ticket_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("ticket_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("previous_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("performed_by", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["ticket_id"], ["complaint_tickets.id"], name="fk_ticket_history_ticket_id_complaint_tickets"),
        sa.ForeignKeyConstraint(["performed_by"], ["users.id"], name="fk_ticket_history_performed_by_users"),
        sa.PrimaryKeyConstraint("id", name="pk_ticket_history"),
    )
    op.create_index("ix_ticket_history_performed_by", "ticket_history", ["performed_by"], unique=False)
    op.create_index(
        "ix_ticket_history_ticket_created",
        "ticket_history",
        ["ticket_id", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_ticket_history_ticket_created", table_name="ticket_history")
    op.drop_index("ix_ticket_history_performed_by", table_name="ticket_history")
    op.drop_table("ticket_history")
    op.drop_index("ix_complaint_tickets_customer", table_name="complaint_tickets")
    op.drop_index("ix_complaint_tickets_team_created", table_name="complaint_tickets")
    op.drop_index("ix_complaint_tickets_status_created", table_name="complaint_tickets")
    op.drop_index("ix_complaint_tickets_assigned_to", table_name="complaint_tickets")
    op.drop_index("ix_complaint_tickets_created_by", table_name="complaint_tickets")
    op.drop_table("complaint_tickets")
    op.drop_index("ix_users_role", table_name="users")
    op.drop_table("users")
