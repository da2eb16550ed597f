"""Collaboration scaffolding query functions for TeamDash.

Covers the project task board (columns and cards) and the storage folder
tree provisioned at kickoff.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from teamdash.database.models.collaboration import (
    BoardCard,
    BoardColumn,
    StorageFolder,
    TaskBoard,
)

logger = structlog.get_logger(__name__)


async def get_board(session: AsyncSession, project_id: UUID) -> TaskBoard | None:
    """Return the task board of a project, if provisioned."""
    result = await session.execute(select(TaskBoard).where(TaskBoard.project_id == project_id))
    return result.scalar_one_or_none()


async def create_board(
    session: AsyncSession,
    project_id: UUID,
    title: str,
    created_by: UUID,
    description: str | None = None,
    members: list[dict[str, Any]] | None = None,
) -> TaskBoard:
    """Create the task board of a project."""
    board = TaskBoard(
        project_id=project_id,
        title=title,
        description=description,
        created_by=created_by,
        members=members or [],
    )
    session.add(board)
    await session.flush()

    logger.info("task_board_created", board_id=str(board.id), project_id=str(project_id))
    return board


async def list_columns(session: AsyncSession, board_id: UUID) -> list[BoardColumn]:
    """List the columns of a board in display order."""
    result = await session.execute(
        select(BoardColumn)
        .where(BoardColumn.board_id == board_id)
        .order_by(BoardColumn.position.asc())
    )
    return list(result.scalars().all())


async def create_column(
    session: AsyncSession,
    board_id: UUID,
    title: str,
    position: int,
    color: str,
) -> BoardColumn:
    """Append a column to a board."""
    column = BoardColumn(board_id=board_id, title=title, position=position, color=color)
    session.add(column)
    await session.flush()
    return column


async def list_cards(session: AsyncSession, board_id: UUID) -> list[BoardCard]:
    """List the cards of a board in display order."""
    result = await session.execute(
        select(BoardCard).where(BoardCard.board_id == board_id).order_by(BoardCard.position.asc())
    )
    return list(result.scalars().all())


async def create_card(
    session: AsyncSession,
    board_id: UUID,
    column_id: UUID,
    title: str,
    description: str,
    position: int,
    priority: str = "medium",
) -> BoardCard:
    """Add a card to a board column."""
    card = BoardCard(
        board_id=board_id,
        column_id=column_id,
        title=title,
        description=description,
        position=position,
        priority=priority,
    )
    session.add(card)
    await session.flush()
    return card


async def list_folders(session: AsyncSession, project_id: UUID) -> list[StorageFolder]:
    """List the storage folders of a project ordered by path."""
    result = await session.execute(
        select(StorageFolder)
        .where(StorageFolder.project_id == project_id)
        .order_by(StorageFolder.path.asc())
    )
    return list(result.scalars().all())


async def ensure_folder(session: AsyncSession, project_id: UUID, path: str) -> bool:
    """Create a storage folder unless it already exists.

    Returns:
        True if the folder was created.
    """
    result = await session.execute(
        select(StorageFolder).where(
            StorageFolder.project_id == project_id,
            StorageFolder.path == path,
        )
    )
    if result.scalar_one_or_none() is not None:
        return False

    session.add(StorageFolder(project_id=project_id, path=path))
    await session.flush()
    return True
