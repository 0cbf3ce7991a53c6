from __future__ import annotations

import hashlib
import re

from bs4 import BeautifulSoup, Tag

CONTROL_TAGS = ["input", "textarea", "select", "button"]
DROPPED_TAGS = ["script", "style", "noscript", "template", "svg"]
VOLATILE_ATTRIBUTES = {
    "id",
    "for",
    "nonce",
    "value",
    "style",
    "aria-labelledby",
    "aria-describedby",
    "aria-controls",
    "aria-owns",
    "aria-activedescendant",
}
TIMESTAMP_RE = re.compile(r"\d{13,}")
WHITESPACE_RE = re.compile(r"\s+")


def _form_root(soup: BeautifulSoup) -> Tag | BeautifulSoup:
    forms = soup.find_all("form")
    if forms:
        return max(forms, key=lambda form: len(form.find_all(CONTROL_TAGS)))
    return soup.body or soup


def normalize_form_markup(html: str) -> str:
    soup = BeautifulSoup(html or "", "html.parser")
    root = _form_root(soup)

    for node in root.find_all(DROPPED_TAGS):
        node.decompose()

    for node in [root, *root.find_all(True)]:
        for attribute in list(node.attrs):
            if attribute in VOLATILE_ATTRIBUTES or attribute.startswith("data-"):
                del node.attrs[attribute]

    markup = str(root)
    markup = TIMESTAMP_RE.sub("", markup)
    return WHITESPACE_RE.sub(" ", markup).strip()


def compute_form_hash(html: str) -> str:
    """SHA-256 over the form's markup with volatile attributes removed."""
    return hashlib.sha256(normalize_form_markup(html).encode("utf-8")).hexdigest()
