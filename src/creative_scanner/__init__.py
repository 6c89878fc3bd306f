"""Scan ad-preview pages for creative variants and wrapped model names."""

from .aggregator import aggregate, build_response, merge_records
from .collector import ElementCollection, collect_frame
from .config import ScanSettings
from .containers import associate_by_proximity, clean_title, locate_containers
from .frames import enumerate_frames, map_marker_frames, marker_ids_from_html
from .linebreak import build_normalized_text, check_phrases, detect, locate_phrase, normalize_whitespace
from .logging import jlog, scanlog
from .models import CATEGORIES, Category, CreativeContainer, CreativeRecord, ElementRecord, FrameHandle, PhraseCheckResult
from .resolver import STRATEGIES, ResolutionContext, resolve, resolve_all
from .scan import ScanError, friendly_error_message, run_scan, scan_creatives
from .versioning import get_scanner_version

__all__ = [
    "CATEGORIES",
    "Category",
    "CreativeContainer",
    "CreativeRecord",
    "ElementCollection",
    "ElementRecord",
    "FrameHandle",
    "PhraseCheckResult",
    "ResolutionContext",
    "STRATEGIES",
    "ScanError",
    "ScanSettings",
    "aggregate",
    "associate_by_proximity",
    "build_normalized_text",
    "build_response",
    "check_phrases",
    "clean_title",
    "collect_frame",
    "detect",
    "enumerate_frames",
    "friendly_error_message",
    "get_scanner_version",
    "jlog",
    "locate_containers",
    "locate_phrase",
    "map_marker_frames",
    "marker_ids_from_html",
    "merge_records",
    "normalize_whitespace",
    "resolve",
    "resolve_all",
    "run_scan",
    "scan_creatives",
    "scanlog",
]
