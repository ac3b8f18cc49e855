"""Read page metadata back out of rendered HTML.

The patterns match the markup produced by the master template: the first
``<h1>`` is the title, ``<time pubdate>`` the publish date, the first other
``<time>`` the update date, ``<div class="tags">`` the tag list and
``<meta name="description">`` the excerpt.
"""

from __future__ import annotations

import datetime as dt
import html
import re
from pathlib import Path
from typing import Optional

from .errors import MetadataError
from .models import ArtifactMetadata
from .render import strip_tags

TITLE_RE = re.compile(r"<h1\b[^>]*>(.*?)</h1>", re.IGNORECASE | re.DOTALL)
TIME_RE = re.compile(r"<time\b([^>]*)>(.*?)</time>", re.IGNORECASE | re.DOTALL)
PUBDATE_ATTR_RE = re.compile(r"\bpubdate\b", re.IGNORECASE)
DATETIME_ATTR_RE = re.compile(r'\bdatetime="([^"]*)"', re.IGNORECASE)
TAGS_RE = re.compile(r'<div\b[^>]*\bclass="(?:[^"]*\s)?tags(?:\s[^"]*)?"[^>]*>(.*?)</div>', re.IGNORECASE | re.DOTALL)
META_DESCRIPTION_RE = re.compile(r'<meta\b[^>]*\bname="description"[^>]*>', re.IGNORECASE)
CONTENT_ATTR_RE = re.compile(r'\bcontent="([^"]*)"', re.IGNORECASE)


def _text(fragment: str) -> str:
    return html.unescape(strip_tags(fragment)).strip()


def _time_value(attrs: str, text: str, path: Path) -> dt.date:
    match = DATETIME_ATTR_RE.search(attrs)
    value = match.group(1) if match else _text(text)
    try:
        return dt.date.fromisoformat(value.strip()[:10])
    except ValueError:
        raise MetadataError(f"unreadable date {value!r}", path) from None


def extract_title(html_text: str) -> str:
    match = TITLE_RE.search(html_text)
    return _text(match.group(1)) if match else ""


def extract_dates(html_text: str, path: Path) -> tuple[Optional[dt.date], Optional[dt.date]]:
    published = None
    updated = None
    for match in TIME_RE.finditer(html_text):
        attrs, text = match.group(1), match.group(2)
        if PUBDATE_ATTR_RE.search(attrs):
            if published is None:
                published = _time_value(attrs, text, path)
        elif updated is None:
            updated = _time_value(attrs, text, path)
    return published, updated


def extract_tags(html_text: str) -> tuple[str, ...]:
    match = TAGS_RE.search(html_text)
    if not match:
        return ()
    return tuple(tag.strip() for tag in _text(match.group(1)).split(",") if tag.strip())


def extract_excerpt(html_text: str) -> str:
    meta = META_DESCRIPTION_RE.search(html_text)
    if not meta:
        return ""
    content = CONTENT_ATTR_RE.search(meta.group(0))
    return html.unescape(content.group(1)).strip() if content else ""


def extract_metadata(html_text: str, path: Path, require_published: bool = True) -> ArtifactMetadata:
    title = extract_title(html_text)
    if not title:
        raise MetadataError("no <h1> title in rendered output", path)
    published, updated = extract_dates(html_text, path)
    if require_published and published is None:
        raise MetadataError("no <time pubdate> element in rendered output", path)
    return ArtifactMetadata(
        title=title,
        published=published,
        updated=updated or published,
        tags=extract_tags(html_text),
        excerpt=extract_excerpt(html_text),
    )


def read_metadata(path: Path, require_published: bool = True) -> ArtifactMetadata:
    return extract_metadata(path.read_text(encoding="utf-8"), path, require_published)
