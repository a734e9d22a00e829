"""Tests for completion notifiers."""
import json

import httpx

from app.services.notifier import LoggingNotifier, WebhookNotifier, make_notifier


async def test_webhook_posts_completion():
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True})

    notifier = WebhookNotifier("http://messaging.test/notify", transport=httpx.MockTransport(handler))
    assert await notifier.notify_completion("Ada", "Local Budget", 90) is True
    assert received == [{"userName": "Ada", "title": "Local Budget", "score": 90}]


async def test_webhook_failure_is_reported_not_raised():
    notifier = WebhookNotifier(
        "http://messaging.test/notify",
        transport=httpx.MockTransport(lambda request: httpx.Response(503)),
    )
    assert await notifier.notify_completion("Ada", "Local Budget", 90) is False


async def test_webhook_connection_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    notifier = WebhookNotifier("http://messaging.test/notify", transport=httpx.MockTransport(handler))
    assert await notifier.notify_completion("Ada", "Local Budget", 90) is False


def test_make_notifier():
    assert isinstance(make_notifier("", 1.0), LoggingNotifier)
    assert isinstance(make_notifier("http://messaging.test/notify", 1.0), WebhookNotifier)
