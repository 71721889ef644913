"""Fire-and-forget notifications for new follows, likes and endorsements.

Delivery is delegated to an external webhook (typically the mailer). When no
webhook is configured the notification is only logged. A failed delivery is
logged and never propagated to the request that triggered it.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Literal

import httpx

from devlink.core.settings import settings

logger = logging.getLogger(__name__)

NotificationKind = Literal["follow", "like", "endorsement"]


@dataclass(frozen=True)
class Notification:
    """A single outbound notification."""

    kind: NotificationKind
    actor_name: str
    target_email: str
    subject: str
    link: str


def follow_notification(actor_name: str, target_email: str, profile_url: str) -> Notification:
    return Notification(
        kind="follow",
        actor_name=actor_name,
        target_email=target_email,
        subject=f"{actor_name} started following you on DevLink",
        link=profile_url,
    )


def like_notification(
    actor_name: str, target_email: str, item_title: str, item_url: str
) -> Notification:
    return Notification(
        kind="like",
        actor_name=actor_name,
        target_email=target_email,
        subject=f"{actor_name} liked your {item_title}",
        link=item_url,
    )


def endorsement_notification(
    actor_name: str, target_email: str, skill: str, profile_url: str
) -> Notification:
    return Notification(
        kind="endorsement",
        actor_name=actor_name,
        target_email=target_email,
        subject=f"{actor_name} endorsed you for {skill}",
        link=profile_url,
    )


class NotificationDispatcher:
    """Deliver notifications to the configured webhook."""

    def __init__(
        self,
        webhook_url: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self.webhook_url = webhook_url
        self._timeout = settings.notification_timeout_seconds if timeout is None else timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def dispatch(self, notification: Notification) -> bool:
        """Send ``notification``; return True if it was delivered."""
        if not self.webhook_url:
            logger.info(
                "Notification (%s) for %s: %s",
                notification.kind,
                notification.target_email,
                notification.subject,
            )
            return False
        try:
            response = await self._get_client().post(self.webhook_url, json=asdict(notification))
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Failed to deliver %s notification: %s", notification.kind, e)
            return False
        except Exception:
            logger.error("Unexpected error delivering notification", exc_info=True)
            return False
        return True

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
