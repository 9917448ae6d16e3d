"""Playwright-backed source of raw parking availability payloads."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    Response,
    async_playwright,
)

from infrastructure.constants import (
    AVAILABILITY_URL_MARKER,
    BROWSER_USER_AGENT,
    BROWSER_VIEWPORT,
    MAX_MISSED_PAYLOADS,
    PARKING_URL,
    BrowserTimeouts,
)
from infrastructure.errors import FetchError
from monitoring.snapshot_normalizer import extract_availability_payload


class PlaywrightSnapshotSource:
    """Keeps one page open on the reservation site and captures its availability API responses.

    The site pushes availability through GraphQL responses triggered by page
    loads. Every matching response is buffered; :meth:`fetch` reloads the page
    and returns the latest buffered payload.
    """

    def __init__(
        self,
        url: str = PARKING_URL,
        *,
        url_marker: str = AVAILABILITY_URL_MARKER,
        headless: bool = True,
        payload_timeout: float = BrowserTimeouts.PAYLOAD_WAIT / 1000,
        max_missed_payloads: int = MAX_MISSED_PAYLOADS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.url = url
        self.url_marker = url_marker
        self.headless = headless
        self.payload_timeout = payload_timeout
        self.max_missed_payloads = max_missed_payloads
        self.logger = logger or logging.getLogger("SnapshotSource")

        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

        self._latest_payload: Optional[Mapping[str, Any]] = None
        self._payload_event: Optional[asyncio.Event] = None
        self._missed_payloads = 0

    @property
    def started(self) -> bool:
        return self.page is not None

    async def start(self) -> None:
        """Launch the browser and open the reservation page."""
        if self.started:
            return

        self._payload_event = asyncio.Event()
        try:
            self.logger.info("🚀 Launching browser...")
            self.playwright = await async_playwright().start()
            self.browser = await self.playwright.chromium.launch(headless=self.headless)
            self.context = await self.browser.new_context(
                viewport=BROWSER_VIEWPORT,
                user_agent=BROWSER_USER_AGENT,
            )
            page = await self.context.new_page()
            page.on("response", self._on_response)

            self.logger.info("🌍 Navigating to parking page %s", self.url)
            await page.goto(
                self.url,
                wait_until="domcontentloaded",
                timeout=BrowserTimeouts.NAVIGATION,
            )
            self.page = page
        except PlaywrightError as exc:
            await self.stop()
            raise FetchError(f"Failed to open {self.url}: {exc}") from exc

    async def stop(self) -> None:
        """Close page, context, browser and Playwright, ignoring teardown errors."""
        for resource in (self.context, self.browser):
            if resource is None:
                continue
            try:
                await resource.close()
            except PlaywrightError as exc:
                self.logger.debug("Error closing browser resource: %s", exc)

        if self.playwright is not None:
            try:
                await self.playwright.stop()
            except PlaywrightError as exc:
                self.logger.debug("Error stopping Playwright: %s", exc)

        self.playwright = None
        self.browser = None
        self.context = None
        self.page = None
        self._missed_payloads = 0

    async def fetch(self) -> Mapping[str, Any]:
        """Return a fresh raw availability payload or raise FetchError."""

        if not self.started:
            await self.start()
        else:
            assert self.page is not None and self._payload_event is not None
            self._payload_event.clear()
            self.logger.info("🔄 Refreshing page for new data...")
            try:
                await self.page.reload(wait_until="networkidle", timeout=BrowserTimeouts.RELOAD)
            except PlaywrightError as exc:
                self.logger.warning("♻️ Page reload failed, closing browser for relaunch: %s", exc)
                await self.stop()
                raise FetchError(f"Page reload failed: {exc}") from exc

        try:
            payload = await self._wait_for_payload()
        except FetchError:
            self._missed_payloads += 1
            if self._missed_payloads >= self.max_missed_payloads:
                self.logger.warning(
                    "♻️ %s reloads without availability data, closing browser for relaunch",
                    self._missed_payloads,
                )
                await self.stop()
            raise

        self._missed_payloads = 0
        return payload

    async def _wait_for_payload(self) -> Mapping[str, Any]:
        assert self._payload_event is not None
        try:
            await asyncio.wait_for(self._payload_event.wait(), timeout=self.payload_timeout)
        except asyncio.TimeoutError as exc:
            raise FetchError(
                f"No availability response matching '{self.url_marker}' within {self.payload_timeout:.0f}s"
            ) from exc

        assert self._latest_payload is not None
        return self._latest_payload

    async def _on_response(self, response: Response) -> None:
        if self.url_marker not in response.url:
            return

        try:
            body = await response.json()
        except (PlaywrightError, ValueError) as exc:
            self.logger.debug("⚠️ Error parsing response JSON from %s: %s", response.url, exc)
            return

        payload = extract_availability_payload(body)
        if payload is None:
            return

        self.logger.debug("📡 Captured availability payload with %s dates", len(payload))
        self._latest_payload = payload
        if self._payload_event is not None:
            self._payload_event.set()

    async def __aenter__(self) -> "PlaywrightSnapshotSource":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
