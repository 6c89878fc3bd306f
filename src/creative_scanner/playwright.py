"""Playwright helpers: browser launch, navigation with retries, cleanup."""

from __future__ import annotations

import asyncio
import os
import sys
from typing import Any

from playwright.async_api import Browser, Page, Playwright

from .config import ScanSettings
from .logging import jlog

CHROMIUM_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]

CONNECTION_ERROR_MARKERS = ("ECONNRESET", "ECONNREFUSED", "ETIMEDOUT", "net::ERR")


class LaunchError(RuntimeError):
    """No launch configuration produced a working browser."""


class NavigationError(RuntimeError):
    """The target URL could not be loaded within the retry budget."""


def _candidate_chrome_paths(platform: str | None = None) -> list[str]:
    platform = platform or sys.platform
    home = os.path.expanduser("~")
    if platform == "darwin":
        return [
            "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
            "/Applications/Chromium.app/Contents/MacOS/Chromium",
            "/Applications/Google Chrome Canary.app/Contents/MacOS/Google Chrome Canary",
            os.path.join(home, "Applications/Google Chrome.app/Contents/MacOS/Google Chrome"),
            os.path.join(home, "Applications/Chromium.app/Contents/MacOS/Chromium"),
        ]
    if platform.startswith("linux"):
        return [
            "/usr/bin/google-chrome",
            "/usr/bin/google-chrome-stable",
            "/usr/bin/chromium",
            "/usr/bin/chromium-browser",
            "/snap/bin/chromium",
        ]
    if platform == "win32":
        program_files = os.environ.get("ProgramFiles", r"C:\Program Files")
        program_files_x86 = os.environ.get("ProgramFiles(x86)", r"C:\Program Files (x86)")
        local_app_data = os.environ.get("LOCALAPPDATA") or os.path.join(home, "AppData", "Local")
        return [
            os.path.join(program_files, "Google", "Chrome", "Application", "chrome.exe"),
            os.path.join(program_files_x86, "Google", "Chrome", "Application", "chrome.exe"),
            os.path.join(local_app_data, "Google", "Chrome", "Application", "chrome.exe"),
            os.path.join(program_files, "Chromium", "Application", "chromium.exe"),
            os.path.join(local_app_data, "Chromium", "Application", "chromium.exe"),
        ]
    return []


def find_system_chrome(platform: str | None = None) -> str | None:
    """Return the first installed Chrome/Chromium executable, if any."""

    for path in _candidate_chrome_paths(platform):
        try:
            if os.path.exists(path):
                jlog("info", event="system_chrome_found", path=path)
                return path
        except OSError:
            continue
    return None


def launch_configurations(settings: ScanSettings, system_chrome: str | None = None) -> list[dict[str, Any]]:
    """Launch kwargs to try in order, most capable first."""

    headless = settings.headless
    configs: list[dict[str, Any]] = [
        {"headless": headless, "channel": "chromium", "args": list(CHROMIUM_LAUNCH_ARGS)},
        {"headless": headless, "args": list(CHROMIUM_LAUNCH_ARGS)},
        {"headless": headless, "args": ["--no-sandbox"]},
        {"headless": headless, "args": []},
    ]
    if system_chrome:
        configs.extend(
            [
                {"headless": headless, "executable_path": system_chrome, "args": list(CHROMIUM_LAUNCH_ARGS)},
                {"headless": headless, "executable_path": system_chrome, "args": ["--no-sandbox"]},
            ]
        )
    return configs


def _launch_failure_message(attempts: int, configs: int, error: BaseException | None, platform: str | None = None) -> str:
    platform = platform or sys.platform
    message = f"Failed to launch browser after {attempts} attempts with {configs} different configurations.\n\n"
    if platform == "darwin":
        message += (
            "On macOS, this is often caused by:\n"
            "1. Missing or corrupted Chromium installation\n"
            "2. macOS security restrictions\n\n"
            "Solutions:\n"
            "- Reinstall the browser: python -m playwright install chromium\n"
            "- Or install Chromium via Homebrew: brew install chromium --no-quarantine\n"
            "- Or install Google Chrome from https://www.google.com/chrome/\n\n"
        )
    message += f"Original error: {str(error or 'Unknown error')[:500]}"
    return message


async def launch_browser(pw: Playwright, settings: ScanSettings | None = None) -> Browser:
    """Try every launch configuration, up to ``max_attempts`` rounds."""

    settings = settings or ScanSettings()
    configs = launch_configurations(settings, find_system_chrome())
    last_error: BaseException | None = None
    for attempt in range(1, settings.max_attempts + 1):
        for option, kwargs in enumerate(configs, start=1):
            try:
                browser = await pw.chromium.launch(**kwargs)
                jlog(
                    "info",
                    event="browser_launched",
                    attempt=attempt,
                    option=option,
                    system_chrome=bool(kwargs.get("executable_path")),
                )
                return browser
            except Exception as exc:
                last_error = exc
                jlog("warning", event="browser_launch_failed", attempt=attempt, option=option, error=str(exc)[:300])
        if attempt < settings.max_attempts:
            await asyncio.sleep(settings.launch_backoff_ms / 1000.0 * attempt)
    raise LaunchError(_launch_failure_message(settings.max_attempts, len(configs), last_error))


def is_connection_error(message: str) -> bool:
    return any(marker in (message or "") for marker in CONNECTION_ERROR_MARKERS)


async def navigate_with_retry(page: Page, url: str, settings: ScanSettings | None = None) -> None:
    """``page.goto`` with bounded retries; each retry is a fresh attempt."""

    settings = settings or ScanSettings()
    last_error: BaseException | None = None
    for attempt in range(1, settings.max_attempts + 1):
        try:
            await page.goto(url, wait_until=settings.wait_until, timeout=settings.navigation_timeout_ms)
            jlog("info", event="navigation_ok", attempt=attempt)
            return
        except Exception as exc:
            last_error = exc
            jlog("warning", event="navigation_failed", attempt=attempt, error=str(exc)[:300])
            if attempt >= settings.max_attempts:
                break
            if is_connection_error(str(exc)):
                delay = settings.navigation_backoff_ms / 1000.0 * attempt
            else:
                delay = settings.navigation_backoff_ms / 1000.0
            jlog("info", event="retry_backoff", attempt=attempt, delay_s=round(delay, 3))
            await asyncio.sleep(delay)
    raise NavigationError(
        f"Failed to navigate to URL after {settings.max_attempts} attempts: {last_error or 'Unknown error'}"
    )


async def settle(page: Page, delay_ms: int) -> None:
    """Give script-injected creatives time to land in the DOM."""

    if delay_ms > 0:
        jlog("info", event="settle_wait", delay_ms=delay_ms)
        await page.wait_for_timeout(delay_ms)


async def wait_fonts_ready(page: Page) -> None:
    """Wait for web fonts in every frame; glyph metrics decide where text wraps."""

    for frame in page.frames:
        try:
            await frame.evaluate(
                "() => (document.fonts && document.fonts.ready) ? document.fonts.ready.then(() => true) : true"
            )
        except Exception:
            continue


async def cleanup_playwright(context, browser) -> None:
    """Close the browser resources; never raises."""

    try:
        if context:
            await context.close()
    except Exception as exc:
        jlog("warning", event="context_close_error", error=str(exc))
    try:
        if browser:
            await browser.close()
    except Exception as exc:
        jlog("warning", event="browser_close_error", error=str(exc))


__all__ = [
    "CHROMIUM_LAUNCH_ARGS",
    "LaunchError",
    "NavigationError",
    "cleanup_playwright",
    "find_system_chrome",
    "is_connection_error",
    "launch_browser",
    "launch_configurations",
    "navigate_with_retry",
    "settle",
    "wait_fonts_ready",
]
