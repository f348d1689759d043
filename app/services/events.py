"""Change notifier which publishes movie events to the message bus over HTTP."""

import asyncio
import logging

import httpx
from pydantic import BaseModel

from app.config import settings

logger = logging.getLogger(__name__)

MOVIE_UPDATED_TOPIC = "movie.updated"


class ChangeNotifier:
    """
    Fire-and-forget publisher.

    ``publish`` may be called from any thread (sync route handlers run in a
    worker pool). It hands the event to the application loop and returns at
    once; delivery runs as a tracked task with retries. A delivery that still
    fails after the last attempt is logged and dropped, the write that
    produced it stays committed.
    """

    def __init__(
        self,
        bus_url: str | None = settings.event_bus_url,
        timeout: float = settings.event_timeout,
        retries: int = settings.event_retries,
        retry_backoff: float = settings.event_retry_backoff,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._bus_url = bus_url.rstrip("/") if bus_url else None
        self._timeout = timeout
        self._retries = max(retries, 1)
        self._retry_backoff = retry_backoff
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._tasks: set[asyncio.Task] = set()

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        if self._bus_url:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        logger.info("ChangeNotifier started: bus=%s", self._bus_url or "(none, log only)")

    async def aclose(self) -> None:
        """Wait for in-flight deliveries, then release the HTTP client."""
        # let publish() calls already queued from other threads create their tasks
        await asyncio.sleep(0)
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._loop = None

    def publish(self, topic: str, event: BaseModel) -> None:
        payload = event.model_dump(by_alias=True, mode="json")
        if self._loop is None or self._loop.is_closed():
            logger.error("Notifier not running, dropping %s event %s", topic, payload)
            return
        self._loop.call_soon_threadsafe(self._schedule, topic, payload)

    def _schedule(self, topic: str, payload: dict) -> None:
        task = asyncio.get_running_loop().create_task(self.deliver(topic, payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def deliver(self, topic: str, payload: dict) -> bool:
        """POST one event to ``{bus_url}/{topic}``, retrying on failure."""
        if self._client is None:
            logger.info("Event %s %s (no bus configured)", topic, payload)
            return True

        url = f"{self._bus_url}/{topic}"
        for attempt in range(1, self._retries + 1):
            try:
                resp = await self._client.post(url, json=payload)
                resp.raise_for_status()
                logger.info("Published %s id=%s (attempt %d)", topic, payload.get("id"), attempt)
                return True
            except httpx.HTTPError as exc:
                logger.warning(
                    "Publishing %s failed (attempt %d/%d): %s",
                    topic, attempt, self._retries, exc,
                )
                if attempt < self._retries:
                    await asyncio.sleep(self._retry_backoff * attempt)

        logger.error("Dropping %s event after %d attempts: %s", topic, self._retries, payload)
        return False

    async def health_check(self) -> dict:
        """Report whether a bus is configured and answers HTTP."""
        if self._client is None:
            return {"configured": False, "reachable": False}
        try:
            resp = await self._client.get(self._bus_url)
            return {"configured": True, "reachable": resp.status_code < 500}
        except httpx.HTTPError as exc:
            logger.warning("Event bus health check failed: %s", exc)
            return {"configured": True, "reachable": False, "error": str(exc)}
