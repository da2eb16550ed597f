"""Notification webhook client for TeamDash.

Candidate-facing notifications are persisted in ``candidate_notifications``
by the engine. When a webhook URL is configured, the same events are also
POSTed to it so that e-mail or chat workflows can pick them up. Delivery is
best effort: failures are logged and reported as ``False``, never raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID

import httpx

from teamdash.config import NotificationConfig
from teamdash.logging import get_logger

logger = get_logger(__name__)


class WebhookEventType(str, Enum):
    """Types of events forwarded to the notification webhook."""

    OPPORTUNITY_OPENED = "opportunity_opened"
    OPPORTUNITY_TAKEN = "opportunity_taken"
    KICKOFF_INVITATION = "kickoff_invitation"
    ACCESS_REVOKED = "access_revoked"
    PROJECT_LIVE = "project_live"


@dataclass
class WebhookPayload:
    """Standard payload format for notification webhooks."""

    event_type: WebhookEventType
    timestamp: datetime
    project_id: UUID | None = None
    assignment_id: UUID | None = None
    candidate_ids: list[UUID] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert payload to dictionary for JSON serialization."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "project_id": str(self.project_id) if self.project_id else None,
            "assignment_id": str(self.assignment_id) if self.assignment_id else None,
            "candidate_ids": [str(candidate_id) for candidate_id in self.candidate_ids],
            "data": self.data,
        }


class WebhookNotifier:
    """Client for forwarding engine notifications to an HTTP webhook."""

    def __init__(
        self,
        config: NotificationConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.logger = logger.bind(component="WebhookNotifier")
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def active(self) -> bool:
        """True when delivery is enabled and a URL is configured."""
        return self.config.enabled and bool(self.config.webhook_url)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def send(self, payload: WebhookPayload) -> bool:
        """Send payload to the webhook.

        Returns True if delivered or intentionally skipped, False on failure.
        """
        if not self.active:
            self.logger.debug("webhook_disabled", event_type=payload.event_type.value)
            return True

        try:
            client = await self._get_client()
            headers = {"Content-Type": "application/json"}
            if self.config.auth_header:
                headers["Authorization"] = self.config.auth_header

            response = await client.post(
                self.config.webhook_url,
                json=payload.to_dict(),
                headers=headers,
            )

            if response.is_success:
                self.logger.info(
                    "webhook_sent",
                    event_type=payload.event_type.value,
                    status_code=response.status_code,
                )
                return True

            self.logger.warning(
                "webhook_failed",
                event_type=payload.event_type.value,
                status_code=response.status_code,
                response_text=response.text[:200],
            )
            return False

        except httpx.RequestError as e:
            self.logger.error(
                "webhook_error",
                event_type=payload.event_type.value,
                error=str(e),
            )
            return False

    async def notify_opportunity(
        self,
        project_id: UUID,
        assignment_id: UUID,
        candidate_ids: list[UUID],
        profession: str,
        seniority: str,
    ) -> bool:
        """Tell matching candidates a slot is open."""
        return await self.send(
            WebhookPayload(
                event_type=WebhookEventType.OPPORTUNITY_OPENED,
                timestamp=datetime.now(timezone.utc),
                project_id=project_id,
                assignment_id=assignment_id,
                candidate_ids=candidate_ids,
                data={"profession": profession, "seniority": seniority},
            )
        )

    async def notify_opportunity_taken(
        self,
        project_id: UUID,
        assignment_id: UUID,
        candidate_ids: list[UUID],
    ) -> bool:
        """Tell losing candidates the slot was accepted by someone else."""
        return await self.send(
            WebhookPayload(
                event_type=WebhookEventType.OPPORTUNITY_TAKEN,
                timestamp=datetime.now(timezone.utc),
                project_id=project_id,
                assignment_id=assignment_id,
                candidate_ids=candidate_ids,
            )
        )

    async def notify_kickoff_invitation(
        self,
        project_id: UUID,
        candidate_ids: list[UUID],
        title: str,
        start_at: datetime,
        meeting_url: str,
    ) -> bool:
        """Invite the team to the kickoff meeting."""
        return await self.send(
            WebhookPayload(
                event_type=WebhookEventType.KICKOFF_INVITATION,
                timestamp=datetime.now(timezone.utc),
                project_id=project_id,
                candidate_ids=candidate_ids,
                data={
                    "title": title,
                    "start_at": start_at.isoformat(),
                    "meeting_url": meeting_url,
                },
            )
        )

    async def notify_access_revoked(
        self,
        project_id: UUID,
        assignment_id: UUID,
        candidate_id: UUID,
        reason: str,
    ) -> bool:
        """Tell a displaced candidate they lost access to a project."""
        return await self.send(
            WebhookPayload(
                event_type=WebhookEventType.ACCESS_REVOKED,
                timestamp=datetime.now(timezone.utc),
                project_id=project_id,
                assignment_id=assignment_id,
                candidate_ids=[candidate_id],
                data={"reason": reason},
            )
        )

    async def notify_project_live(self, project_id: UUID, title: str) -> bool:
        """Announce that a project went live."""
        return await self.send(
            WebhookPayload(
                event_type=WebhookEventType.PROJECT_LIVE,
                timestamp=datetime.now(timezone.utc),
                project_id=project_id,
                data={"title": title},
            )
        )
