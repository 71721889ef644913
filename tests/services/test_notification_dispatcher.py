"""Tests for the notification dispatcher."""

import json

import httpx
import pytest

from devlink.services.notifications import (
    NotificationDispatcher,
    endorsement_notification,
    follow_notification,
    like_notification,
)

WEBHOOK = "https://hooks.example.com/notify"


def _dispatcher(handler) -> NotificationDispatcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return NotificationDispatcher(WEBHOOK, client=client)


def test_subjects() -> None:
    assert (
        follow_notification("Casey", "a@example.com", "https://x/casey").subject
        == "Casey started following you on DevLink"
    )
    assert (
        like_notification("Casey", "a@example.com", 'project "Dash"', "https://x/p/1").subject
        == 'Casey liked your project "Dash"'
    )
    assert (
        endorsement_notification("Casey", "a@example.com", "Python", "https://x/alex").subject
        == "Casey endorsed you for Python"
    )


@pytest.mark.asyncio
async def test_without_webhook_only_logs(caplog) -> None:
    dispatcher = NotificationDispatcher(None)
    with caplog.at_level("INFO", logger="devlink.services.notifications"):
        delivered = await dispatcher.dispatch(
            follow_notification("Casey", "a@example.com", "https://x/casey")
        )
    assert delivered is False
    assert "started following you" in caplog.text


@pytest.mark.asyncio
async def test_posts_json_to_webhook() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(202)

    dispatcher = _dispatcher(handler)
    delivered = await dispatcher.dispatch(
        follow_notification("Casey", "a@example.com", "https://x/casey")
    )
    await dispatcher.close()

    assert delivered is True
    assert seen[0]["kind"] == "follow"
    assert seen[0]["target_email"] == "a@example.com"


@pytest.mark.asyncio
async def test_http_error_is_logged_not_raised() -> None:
    dispatcher = _dispatcher(lambda request: httpx.Response(500))

    delivered = await dispatcher.dispatch(
        like_notification("Casey", "a@example.com", "post", "https://x/b/1")
    )

    assert delivered is False


@pytest.mark.asyncio
async def test_connection_error_is_logged_not_raised() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    dispatcher = _dispatcher(handler)

    assert await dispatcher.dispatch(
        endorsement_notification("Casey", "a@example.com", "Python", "https://x/alex")
    ) is False
