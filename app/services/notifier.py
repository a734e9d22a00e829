"""Completion notifier: fire-and-forget messages when a user finishes a simulation."""
import logging

import httpx

logger = logging.getLogger(__name__)


class CompletionNotifier:
    """Sends a completion event. Implementations must never raise."""

    async def notify_completion(self, user_name: str, title: str, score: int) -> bool:
        raise NotImplementedError


class LoggingNotifier(CompletionNotifier):
    async def notify_completion(self, user_name: str, title: str, score: int) -> bool:
        logger.info("Simulation completed: %s finished %r with %d%%", user_name, title, score)
        return True


class WebhookNotifier(CompletionNotifier):
    """Posts ``{userName, title, score}`` to the messaging service webhook."""

    def __init__(self, url: str, timeout: float = 3.0, transport: httpx.AsyncBaseTransport | None = None):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def notify_completion(self, user_name: str, title: str, score: int) -> bool:
        payload = {"userName": user_name, "title": title, "score": score}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
            return True
        except httpx.HTTPError as exc:
            logger.warning("Completion notification for %s failed: %s", user_name, exc)
            return False


def make_notifier(url: str, timeout: float) -> CompletionNotifier:
    if url:
        return WebhookNotifier(url, timeout=timeout)
    return LoggingNotifier()
