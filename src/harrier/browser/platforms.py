from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

from harrier.types import Platform

logger = logging.getLogger(__name__)

URL_FINGERPRINTS: tuple[tuple[str, Platform], ...] = (
    ("ashbyhq.com", "ashby"),
    ("greenhouse.io", "greenhouse"),
    ("lever.co", "lever"),
    ("workable.com", "workable"),
)

MARKUP_FINGERPRINTS: tuple[tuple[str, Platform], ...] = (
    ("_systemfield_", "ashby"),
    ("ashby-application-form", "ashby"),
    ("grnhse", "greenhouse"),
    ("boards.greenhouse.io", "greenhouse"),
    ("lever-frame", "lever"),
    ("jobs.lever.co", "lever"),
    ("candidate[firstname]", "workable"),
    ("workable", "workable"),
)


def detect_platform_from_url(url: str) -> Platform | None:
    parsed = urlparse(url or "")
    haystack = f"{parsed.netloc}{parsed.path}".lower()
    for needle, platform in URL_FINGERPRINTS:
        if needle in haystack:
            return platform
    return None


def detect_platform_from_markup(html: str) -> Platform | None:
    lowered = (html or "").lower()
    for needle, platform in MARKUP_FINGERPRINTS:
        if needle in lowered:
            return platform
    return None


def detect_platform(url: str, html: str = "") -> Platform:
    """Classify a page into an ATS tag. Unmatched pages are ``generic``."""
    return detect_platform_from_url(url) or detect_platform_from_markup(html) or "generic"


def detect_page_platform(page: Any) -> Platform:
    url = getattr(page, "url", "") or ""
    platform = detect_platform_from_url(url)
    if platform:
        logger.info("Detected platform=%s from url=%s", platform, url)
        return platform

    try:
        html = page.content()
    except Exception as exc:
        logger.warning("Could not read page markup for platform detection: %s", exc)
        html = ""
    platform = detect_platform_from_markup(html) or "generic"
    logger.info("Detected platform=%s from markup url=%s", platform, url)
    return platform
