"""Database query functions for TeamDash.

This module provides async query functions for all database entities:
- Project CRUD and the kickoff compare-and-swap
- Assignment CRUD and the accept compare-and-swap
- Candidate directory and client lookups
- Roster, kickoff event and collaboration scaffolding writes
- Candidate notifications

Query functions flush but never commit; transactions belong to the caller.
"""

from teamdash.database.queries.assignment import (
    claim_assignment,
    create_assignment,
    get_assignment,
    list_assignments,
    retire_assignment,
    update_requirement,
)
from teamdash.database.queries.candidate import (
    create_candidate,
    get_candidate,
    get_candidates,
    list_candidates,
)
from teamdash.database.queries.client import create_client, get_client
from teamdash.database.queries.collaboration import (
    create_board,
    create_card,
    create_column,
    ensure_folder,
    get_board,
    list_cards,
    list_columns,
    list_folders,
)
from teamdash.database.queries.kickoff import (
    add_attendee,
    create_kickoff_event,
    get_kickoff_event,
    list_attendees,
)
from teamdash.database.queries.notification import (
    create_notification,
    find_notification,
    list_notifications,
    set_opportunity_status,
)
from teamdash.database.queries.project import (
    claim_kickoff,
    create_project,
    get_project,
    list_projects,
)
from teamdash.database.queries.roster import add_roster_entry, list_roster

__all__ = [
    # Project queries
    "create_project",
    "get_project",
    "list_projects",
    "claim_kickoff",
    # Assignment queries
    "create_assignment",
    "get_assignment",
    "list_assignments",
    "claim_assignment",
    "retire_assignment",
    "update_requirement",
    # Directory queries
    "create_candidate",
    "get_candidate",
    "get_candidates",
    "list_candidates",
    "create_client",
    "get_client",
    # Kickoff queries
    "add_roster_entry",
    "list_roster",
    "get_kickoff_event",
    "create_kickoff_event",
    "add_attendee",
    "list_attendees",
    "get_board",
    "create_board",
    "create_column",
    "create_card",
    "list_columns",
    "list_cards",
    "ensure_folder",
    "list_folders",
    # Notification queries
    "create_notification",
    "find_notification",
    "list_notifications",
    "set_opportunity_status",
]
