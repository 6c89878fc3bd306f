"""Runtime settings for one scan."""

from __future__ import annotations

import os
from dataclasses import dataclass

# ============================
# Constants & configuration
# ============================
DEFAULT_USER_AGENT: str | None = None
DEFAULT_SETTLE_DELAY_MS = 6_000
DEFAULT_NAVIGATION_TIMEOUT_MS = 90_000
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_LAUNCH_BACKOFF_MS = 1_000
DEFAULT_NAVIGATION_BACKOFF_MS = 2_000
DEFAULT_WAIT_UNTIL = "networkidle"

MARKER_PREFIX = "jvxBase_"
CONTAINER_CLASSES = ("tagPreview", "previewFrameParent")
TITLE_SELECTOR = ".previewVariationTitle"
OUTER_HTML_CHARS = 500
ANCESTOR_HOPS = 5
SIBLING_HOPS = 3

# Only multi-word names can wrap; MAZDA3 / MAZDA6e are left out on purpose.
TARGET_PHRASES: tuple[str, ...] = (
    "MAZDA CX-60",
    "MAZDA CX-30",
    "MAZDA2 HYBRID",
    "MAZDA CX-80",
    "MAZDA MX-5",
    "MAZDA CX-5",
    "MAZDA MX-30",
)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class ScanSettings:
    settle_delay_ms: int = DEFAULT_SETTLE_DELAY_MS
    navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    launch_backoff_ms: int = DEFAULT_LAUNCH_BACKOFF_MS
    navigation_backoff_ms: int = DEFAULT_NAVIGATION_BACKOFF_MS
    wait_until: str = DEFAULT_WAIT_UNTIL
    marker_prefix: str = MARKER_PREFIX
    container_classes: tuple[str, ...] = CONTAINER_CLASSES
    title_selector: str = TITLE_SELECTOR
    phrases: tuple[str, ...] = TARGET_PHRASES
    ancestor_hops: int = ANCESTOR_HOPS
    sibling_hops: int = SIBLING_HOPS
    outer_html_chars: int = OUTER_HTML_CHARS
    check_secondary_phrases: bool = False
    headless: bool = True
    user_agent: str | None = DEFAULT_USER_AGENT
    debug_html: bool = False
    debug_frames: bool = False

    @property
    def container_selector(self) -> str:
        return "".join(f".{cls}" for cls in self.container_classes)

    @property
    def marker_selector(self) -> str:
        return f'iframe[id^="{self.marker_prefix}"]'

    @classmethod
    def from_env(cls) -> "ScanSettings":
        """Build settings from defaults plus ``CREATIVE_SCANNER_*`` overrides."""

        return cls(
            settle_delay_ms=_env_int("CREATIVE_SCANNER_SETTLE_MS", DEFAULT_SETTLE_DELAY_MS),
            navigation_timeout_ms=_env_int("CREATIVE_SCANNER_NAV_TIMEOUT_MS", DEFAULT_NAVIGATION_TIMEOUT_MS),
            max_attempts=max(1, _env_int("CREATIVE_SCANNER_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS)),
            check_secondary_phrases=_env_flag("CREATIVE_SCANNER_CHECK_SL", False),
            headless=not _env_flag("CREATIVE_SCANNER_HEADED", False),
            user_agent=os.getenv("CREATIVE_SCANNER_USER_AGENT") or DEFAULT_USER_AGENT,
        )


__all__ = [
    "ANCESTOR_HOPS",
    "CONTAINER_CLASSES",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_NAVIGATION_TIMEOUT_MS",
    "DEFAULT_SETTLE_DELAY_MS",
    "MARKER_PREFIX",
    "OUTER_HTML_CHARS",
    "SIBLING_HOPS",
    "ScanSettings",
    "TARGET_PHRASES",
    "TITLE_SELECTOR",
]
