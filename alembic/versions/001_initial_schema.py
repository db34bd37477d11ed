"""Initial schema — agents, cases, assignment history, batches, job queue, audit, outbox.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False, default: bool = True) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=sa.func.now() if default else None,
    )


def upgrade() -> None:
    # Agents
    op.create_table(
        "agents",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(200), nullable=True),
        sa.Column("role", sa.String(30), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
    )
    op.create_index("idx_agents_role_active", "agents", ["role", "is_active"])

    # Cases
    op.create_table(
        "cases",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("case_number", sa.Integer, unique=True, nullable=False),
        sa.Column("customer_name", sa.String(200), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("assigned_to", sa.String(36), sa.ForeignKey("agents.id"), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("idx_cases_assigned_to", "cases", ["assigned_to"])
    op.create_index("idx_cases_status", "cases", ["status"])

    # Assignment history (append-only)
    op.create_table(
        "case_assignment_history",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("case_id", sa.String(36), sa.ForeignKey("cases.id"), nullable=False),
        sa.Column("from_agent_id", sa.String(36), sa.ForeignKey("agents.id"), nullable=True),
        sa.Column("to_agent_id", sa.String(36), sa.ForeignKey("agents.id"), nullable=False),
        sa.Column("assigned_by_id", sa.String(36), nullable=False),
        sa.Column("reason", sa.Text, nullable=False),
        sa.Column("batch_id", sa.String(36), nullable=True),
        _timestamp("assigned_at"),
    )
    op.create_index("idx_history_case", "case_assignment_history", ["case_id", "assigned_at"])
    op.create_index("idx_history_batch", "case_assignment_history", ["batch_id"])

    # Bulk batch status
    op.create_table(
        "case_assignment_batches",
        sa.Column("batch_id", sa.String(36), primary_key=True),
        sa.Column("job_id", sa.String(36), nullable=True),
        sa.Column("created_by_id", sa.String(36), nullable=False),
        sa.Column("assigned_to_id", sa.String(36), nullable=False),
        sa.Column("total_cases", sa.Integer, nullable=False),
        sa.Column("processed_cases", sa.Integer, nullable=False, server_default="0"),
        sa.Column("successful_assignments", sa.Integer, nullable=False, server_default="0"),
        sa.Column("failed_assignments", sa.Integer, nullable=False, server_default="0"),
        sa.Column("errors", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        _timestamp("started_at", nullable=True, default=False),
        _timestamp("completed_at", nullable=True, default=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("idx_batches_status", "case_assignment_batches", ["status"])

    # Durable job queue
    op.create_table(
        "assignment_jobs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("payload", sa.JSON, nullable=False),
        sa.Column("priority", sa.Integer, nullable=False, server_default="3"),
        sa.Column("state", sa.String(20), nullable=False, server_default="waiting"),
        sa.Column("attempts", sa.Integer, nullable=False, server_default="0"),
        sa.Column("max_attempts", sa.Integer, nullable=False, server_default="5"),
        sa.Column("progress", sa.JSON, nullable=True),
        sa.Column("result", sa.JSON, nullable=True),
        sa.Column("last_error", sa.Text, nullable=True),
        _timestamp("run_at"),
        _timestamp("locked_at", nullable=True, default=False),
        _timestamp("enqueued_at"),
        _timestamp("finished_at", nullable=True, default=False),
    )
    op.create_index("idx_jobs_claim", "assignment_jobs", ["state", "priority", "enqueued_at"])
    op.create_index("idx_jobs_run_at", "assignment_jobs", ["run_at"])

    # Audit log
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(30), nullable=False),
        sa.Column("entity_id", sa.String(36), nullable=False),
        sa.Column("actor_id", sa.String(36), nullable=False),
        sa.Column("details", sa.JSON, nullable=False, server_default="{}"),
        _timestamp("created_at"),
    )
    op.create_index("idx_audit_entity", "audit_logs", ["entity_type", "entity_id"])

    # Notification outbox
    op.create_table(
        "notification_outbox",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("event_type", sa.String(30), nullable=False),
        sa.Column("payload", sa.JSON, nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        _timestamp("created_at"),
    )
    op.create_index("idx_outbox_status", "notification_outbox", ["status", "created_at"])


def downgrade() -> None:
    op.drop_table("notification_outbox")
    op.drop_table("audit_logs")
    op.drop_table("assignment_jobs")
    op.drop_table("case_assignment_batches")
    op.drop_table("case_assignment_history")
    op.drop_table("cases")
    op.drop_table("agents")
