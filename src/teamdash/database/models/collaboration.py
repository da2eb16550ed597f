"""Collaboration scaffolding models for TeamDash.

Kickoff provisions a task board with starter columns and informational
cards, plus a storage root with one folder per staffed profession. The
board and files UIs consume these rows; the engine only creates them.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from teamdash.database.models.base import Base, JSONType, TimestampMixin


class TaskBoard(TimestampMixin, Base):
    """Kanban board provisioned for a project (at most one per project)."""

    __tablename__ = "task_boards"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id"),
        nullable=False,
        unique=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID] = mapped_column(ForeignKey("clients.id"), nullable=False)
    members: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)


class BoardColumn(TimestampMixin, Base):
    """A column of a task board."""

    __tablename__ = "board_columns"
    __table_args__ = (
        UniqueConstraint("board_id", "title", name="uq_board_column_title"),
    )

    board_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("task_boards.id"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    color: Mapped[str] = mapped_column(Text, nullable=False, default="gray")


class BoardCard(TimestampMixin, Base):
    """A card on a task board."""

    __tablename__ = "board_cards"

    board_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("task_boards.id"),
        nullable=False,
        index=True,
    )
    column_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("board_columns.id"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    priority: Mapped[str] = mapped_column(Text, nullable=False, default="medium")


class StorageFolder(TimestampMixin, Base):
    """A folder in a project's file storage tree."""

    __tablename__ = "storage_folders"
    __table_args__ = (
        UniqueConstraint("project_id", "path", name="uq_storage_folder_path"),
    )

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id"),
        nullable=False,
        index=True,
    )
    path: Mapped[str] = mapped_column(Text, nullable=False)
