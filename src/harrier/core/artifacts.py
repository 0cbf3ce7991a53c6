from __future__ import annotations

import logging
import re
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import requests
from playwright.sync_api import Error as PlaywrightError

from harrier.browser.session import USER_AGENT
from harrier.errors import UploadFailure
from harrier.types import ResumeArtifact

logger = logging.getLogger(__name__)

SLUG_RE = re.compile(r"[^a-z0-9]+")


def download_resume(resume: ResumeArtifact, timeout_sec: int = 30) -> Path:
    """Fetch the résumé into a temporary file. The caller deletes it."""
    try:
        response = requests.get(resume.url, timeout=timeout_sec, headers={"User-Agent": USER_AGENT})
        response.raise_for_status()
    except requests.RequestException as exc:
        raise UploadFailure(f"resume download failed: {exc}") from exc

    if not response.content:
        raise UploadFailure(f"resume download returned no content: {resume.url}")

    with tempfile.NamedTemporaryFile(prefix="resume-", suffix=resume.suffix, delete=False) as handle:
        handle.write(response.content)
    logger.info("Downloaded resume bytes=%d path=%s", len(response.content), handle.name)
    return Path(handle.name)


def screenshot_name(label: str) -> str:
    slug = SLUG_RE.sub("-", label.lower()).strip("-")[:60] or "attempt"
    return f"{slug}-{datetime.now(UTC):%Y%m%dT%H%M%S%f}.png"


def save_screenshot(page: Any, artifact_dir: Path, label: str) -> str | None:
    artifact_dir.mkdir(parents=True, exist_ok=True)
    path = artifact_dir / screenshot_name(label)
    try:
        page.screenshot(path=str(path), full_page=True)
    except PlaywrightError as exc:
        logger.warning("Screenshot failed label=%s: %s", label, exc)
        return None
    return str(path)
