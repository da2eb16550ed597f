"""Initial schema for TeamDash.

Creates the directory tables (clients, candidates), projects and their
resource assignments, the kickoff roster, collaboration scaffolding,
kickoff events and candidate notifications.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import ENUM, JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS: dict[str, tuple[str, ...]] = {
    "availability_status": ("onboarding", "available", "on_hold", "unavailable"),
    "project_status": ("paused", "awaiting_team", "live", "completed", "archived", "deleted"),
    "booking_status": ("draft", "searching", "accepted", "declined", "completed"),
    "retire_reason": ("project_completed", "requirement_changed", "project_cancelled"),
    "member_type": ("client", "resource"),
    "notification_type": ("opportunity", "kickoff_invitation", "access_revoked"),
    "notification_status": ("unread", "read", "accepted", "declined", "expired"),
}


def _enum(name: str) -> ENUM:
    return ENUM(*ENUMS[name], name=name, create_type=False)


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "clients",
        *_base_columns(),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("first_name", sa.Text(), nullable=False, server_default=""),
        sa.Column("last_name", sa.Text(), nullable=False, server_default=""),
        sa.Column("company_name", sa.Text(), nullable=True),
    )

    op.create_table(
        "candidates",
        *_base_columns(),
        sa.Column("first_name", sa.Text(), nullable=False, server_default=""),
        sa.Column("last_name", sa.Text(), nullable=False, server_default=""),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("profession", sa.Text(), nullable=False),
        sa.Column("seniority", sa.Text(), nullable=False),
        sa.Column(
            "availability_status",
            _enum("availability_status"),
            nullable=False,
            server_default="onboarding",
        ),
        sa.Column("languages", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("expertises", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
    )
    op.create_index("ix_candidates_profession", "candidates", ["profession"])

    op.create_table(
        "projects",
        *_base_columns(),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("client_budget", sa.Numeric(12, 2), nullable=True),
        sa.Column("status", _enum("project_status"), nullable=False, server_default="paused"),
        sa.Column("kickoff_confirmed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("manually_paused", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("kicked_off_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_projects_owner_id", "projects", ["owner_id"])

    op.create_table(
        "resource_assignments",
        *_base_columns(),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("profession", sa.Text(), nullable=False),
        sa.Column("seniority", sa.Text(), nullable=False),
        sa.Column("languages", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("expertises", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("is_automated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "booking_status", _enum("booking_status"), nullable=False, server_default="draft"
        ),
        sa.Column("candidate_id", sa.Uuid(), sa.ForeignKey("candidates.id"), nullable=True),
        sa.Column("retired_reason", _enum("retire_reason"), nullable=True),
        sa.Column("retired_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "replaces_id", sa.Uuid(), sa.ForeignKey("resource_assignments.id"), nullable=True
        ),
        sa.Column(
            "replaced_by_id", sa.Uuid(), sa.ForeignKey("resource_assignments.id"), nullable=True
        ),
    )
    op.create_index(
        "ix_resource_assignments_project_id", "resource_assignments", ["project_id"]
    )
    op.create_index(
        "ix_resource_assignments_candidate_id", "resource_assignments", ["candidate_id"]
    )

    op.create_table(
        "project_team_roster",
        *_base_columns(),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("member_id", sa.Uuid(), nullable=False),
        sa.Column("member_type", _enum("member_type"), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("first_name", sa.Text(), nullable=False, server_default=""),
        sa.Column("last_name", sa.Text(), nullable=False, server_default=""),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("seniority", sa.Text(), nullable=True),
        sa.Column("assignment_id", sa.Uuid(), nullable=True),
        sa.UniqueConstraint("project_id", "member_id", name="uq_roster_project_member"),
    )
    op.create_index("ix_project_team_roster_project_id", "project_team_roster", ["project_id"])

    op.create_table(
        "task_boards",
        *_base_columns(),
        sa.Column(
            "project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False, unique=True
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("members", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
    )

    op.create_table(
        "board_columns",
        *_base_columns(),
        sa.Column("board_id", sa.Uuid(), sa.ForeignKey("task_boards.id"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("color", sa.Text(), nullable=False, server_default="gray"),
        sa.UniqueConstraint("board_id", "title", name="uq_board_column_title"),
    )
    op.create_index("ix_board_columns_board_id", "board_columns", ["board_id"])

    op.create_table(
        "board_cards",
        *_base_columns(),
        sa.Column("board_id", sa.Uuid(), sa.ForeignKey("task_boards.id"), nullable=False),
        sa.Column("column_id", sa.Uuid(), sa.ForeignKey("board_columns.id"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("priority", sa.Text(), nullable=False, server_default="medium"),
    )
    op.create_index("ix_board_cards_board_id", "board_cards", ["board_id"])

    op.create_table(
        "storage_folders",
        *_base_columns(),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("path", sa.Text(), nullable=False),
        sa.UniqueConstraint("project_id", "path", name="uq_storage_folder_path"),
    )
    op.create_index("ix_storage_folders_project_id", "storage_folders", ["project_id"])

    op.create_table(
        "kickoff_events",
        *_base_columns(),
        sa.Column(
            "project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False, unique=True
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("meeting_url", sa.Text(), nullable=False),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("clients.id"), nullable=False),
    )

    op.create_table(
        "event_attendees",
        *_base_columns(),
        sa.Column("event_id", sa.Uuid(), sa.ForeignKey("kickoff_events.id"), nullable=False),
        sa.Column("member_id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("response_status", sa.Text(), nullable=False, server_default="pending"),
        sa.UniqueConstraint("event_id", "member_id", name="uq_event_attendee_member"),
    )
    op.create_index("ix_event_attendees_event_id", "event_attendees", ["event_id"])

    op.create_table(
        "candidate_notifications",
        *_base_columns(),
        sa.Column("candidate_id", sa.Uuid(), sa.ForeignKey("candidates.id"), nullable=False),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("assignment_id", sa.Uuid(), nullable=True),
        sa.Column("event_id", sa.Uuid(), nullable=True),
        sa.Column("type", _enum("notification_type"), nullable=False),
        sa.Column("status", _enum("notification_status"), nullable=False, server_default="unread"),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
    )
    op.create_index(
        "ix_candidate_notifications_candidate_id", "candidate_notifications", ["candidate_id"]
    )
    op.create_index(
        "ix_candidate_notifications_assignment_id", "candidate_notifications", ["assignment_id"]
    )


def downgrade() -> None:
    op.drop_table("candidate_notifications")
    op.drop_table("event_attendees")
    op.drop_table("kickoff_events")
    op.drop_table("storage_folders")
    op.drop_table("board_cards")
    op.drop_table("board_columns")
    op.drop_table("task_boards")
    op.drop_table("project_team_roster")
    op.drop_table("resource_assignments")
    op.drop_table("projects")
    op.drop_table("candidates")
    op.drop_table("clients")

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        ENUM(name=name).drop(bind, checkfirst=True)
