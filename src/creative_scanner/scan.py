"""One scan request: launch, navigate, settle, then run the stages in order.

Stages run strictly one after another: enumerate frames, locate containers,
map marker iframes, collect elements, resolve containers to elements and
aggregate. Every map and the used-id set are created here per request.
"""

from __future__ import annotations

import uuid
from typing import Any

from playwright.async_api import Page, async_playwright

from .aggregator import aggregate, build_response, merge_records, records_for_unresolved_frames
from .collector import ElementCollection, collect_frame
from .config import ScanSettings
from .containers import associate_by_proximity, locate_containers
from .debug import describe_frames, dump_frame_inventory, dump_page_html
from .frames import (
    enumerate_frames,
    find_marker_iframes,
    map_marker_frames,
    marker_ids_from_html,
    owning_marker_id,
    probe_frame_access,
)
from .logging import jlog, logging_context, scanlog
from .models import CreativeContainer
from .playwright import cleanup_playwright, launch_browser, navigate_with_retry, settle, wait_fonts_ready
from .resolver import ResolutionContext, resolve_all


class ScanError(RuntimeError):
    """A scan failed; the message is safe to show to the caller."""


def friendly_error_message(error: BaseException | str) -> str:
    """Reword common network and browser failures for the caller."""

    message = str(error) or "Unknown error"
    if "ECONNRESET" in message:
        return (
            "Connection was reset by the server. The website may be blocking automated requests, "
            "the URL may be unreachable, or there may be network issues. "
            "Please try again or check if the URL is accessible."
        )
    if "ECONNREFUSED" in message:
        return "Connection refused. The server may be down or the URL may be incorrect."
    if "ETIMEDOUT" in message or "timeout" in message.lower():
        return "Request timed out. The website took too long to respond. Please try again."
    if "net::ERR" in message:
        return f"Network error: {message}. Please check if the URL is correct and accessible."
    if "Protocol error" in message or "Target closed" in message:
        return "Browser connection lost. This may happen if the page takes too long to load. Please try again."
    if "Navigation failed" in message:
        return (
            f"Navigation failed: {message}. The page may be blocking automated access "
            "or may require authentication."
        )
    return message


async def _marker_iframes(page: Page, settings: ScanSettings) -> list[dict[str, str]]:
    markers = await find_marker_iframes(page.main_frame, settings)
    jlog("info", event="marker_iframes_found", count=len(markers), method="dom")
    if markers:
        return markers
    try:
        html = await page.content()
    except Exception as exc:
        jlog("warning", event="marker_regex_fallback_error", error=str(exc))
        return []
    markers = [{"id": marker_id, "src": ""} for marker_id in marker_ids_from_html(html, settings.marker_prefix)]
    jlog("info", event="marker_iframes_found", count=len(markers), method="regex")
    return markers


async def scan_page(page: Page, settings: ScanSettings | None = None) -> dict[str, Any]:
    """Run every stage against an already loaded page and return the payload."""

    settings = settings or ScanSettings()

    frames = enumerate_frames(page)
    for handle in frames:
        await probe_frame_access(handle)
    jlog(
        "info",
        event="frames_enumerated",
        total=len(frames),
        accessible=sum(1 for h in frames if h.accessible),
    )

    markers = await _marker_iframes(page, settings)
    marker_frames = await map_marker_frames(frames, settings)
    if settings.debug_frames:
        jlog("info", event="frame_tree", frames=describe_frames(frames))

    containers: list[CreativeContainer] = []
    proximity: dict[tuple[int, str, int], dict[str, list[str]]] = {}
    for handle in frames:
        found = await locate_containers(handle, settings)
        if found:
            containers.extend(found)
            proximity.update(await associate_by_proximity(handle, settings))

    collection = ElementCollection()
    for handle in frames:
        await collect_frame(handle, collection, settings, marker_id=owning_marker_id(handle, frames))
    jlog("info", event="collection_done", containers=len(containers), elements=collection.total())

    try:
        if containers:
            ctx = ResolutionContext(collection=collection, proximity=proximity, marker_frames=marker_frames, frames=frames)
            records = aggregate(resolve_all(containers, ctx))
        else:
            records = merge_records(records_for_unresolved_frames(collection, frames))
        response = build_response(records, markers)
    except Exception as exc:
        raise RuntimeError(f"Error building response: {exc}") from exc

    jlog(
        "info",
        event="response_built",
        count=response["count"],
        creatives=len(response["hlMatches"]),
        broken=len(response["brokenModels"]),
    )
    return response


async def scan_creatives(url: str, settings: ScanSettings | None = None, *, request_id: str | None = None) -> dict[str, Any]:
    """Scan ``url`` end-to-end. Raises :class:`ScanError` on failure."""

    settings = settings or ScanSettings()
    request_id = request_id or uuid.uuid4().hex[:12]
    with logging_context(request_id=request_id):
        scanlog("scan_start", url=url)
        try:
            async with async_playwright() as pw:
                browser = None
                context = None
                try:
                    browser = await launch_browser(pw, settings)
                    context_kwargs: dict[str, Any] = {}
                    if settings.user_agent:
                        context_kwargs["user_agent"] = settings.user_agent
                    context = await browser.new_context(**context_kwargs)
                    context.set_default_timeout(settings.navigation_timeout_ms)

                    page = await context.new_page()
                    await navigate_with_retry(page, url, settings)
                    await settle(page, settings.settle_delay_ms)
                    await wait_fonts_ready(page)

                    if settings.debug_html:
                        await dump_page_html(page, request_id)
                    if settings.debug_frames:
                        jlog("info", event="frame_inventory", frames=await dump_frame_inventory(page, settings.marker_prefix))

                    response = await scan_page(page, settings)
                finally:
                    await cleanup_playwright(context, browser)
        except Exception as exc:
            message = friendly_error_message(exc)
            jlog("error", event="scan_failed", url=url, error=str(exc)[:500], message=message)
            raise ScanError(message) from exc

        scanlog("scan_done", url=url, count=response["count"], creatives=len(response["hlMatches"]))
        return response


async def run_scan(url: str, settings: ScanSettings | None = None) -> dict[str, Any]:
    """Like :func:`scan_creatives` but returns the ``ok: false`` payload instead of raising."""

    try:
        return await scan_creatives(url, settings)
    except ScanError as exc:
        return {"ok": False, "error": str(exc)}


__all__ = ["ScanError", "friendly_error_message", "run_scan", "scan_creatives", "scan_page"]
