from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError, MetadataError
from .models import DocumentKind, SourceDocument

LIST_MARKER_RE = re.compile(r"^(?P<indent>[ \t]*)(?:[-+*]|\d+[.)])\s+")
FENCE_RE = re.compile(r"^(?P<indent>[ \t]*)(`{3,}|~{3,})")
ASSET_SUFFIXES = {".css", ".txt"}
IMAGES_DIR = "images"


@dataclass(frozen=True)
class ContentSnapshot:
    """Everything discovered under the content root at build start."""

    root: Path
    documents: tuple[SourceDocument, ...]
    assets: tuple[Path, ...]

    @property
    def posts(self) -> tuple[SourceDocument, ...]:
        return tuple(doc for doc in self.documents if doc.kind is DocumentKind.POST)

    @property
    def pages(self) -> tuple[SourceDocument, ...]:
        return tuple(doc for doc in self.documents if doc.kind is DocumentKind.PAGE)


def list_files(root: Path) -> list[Path]:
    if not root.exists():
        return []
    return sorted((path for path in root.rglob("*") if path.is_file()), key=lambda p: p.as_posix())


def parse_list(value: str) -> list[str]:
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        inner = value[1:-1]
        items = [item.strip().strip("'\"") for item in inner.split(",")]
    else:
        items = [item.strip() for item in value.split(",")]
    return [item for item in items if item]


def parse_front_matter(text: str) -> tuple[dict, str]:
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}, clean_text

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            end = i
            break
    if end is None:
        return {}, clean_text

    meta = {}
    for line in lines[1:end]:
        line = line.strip()
        if not line or line.startswith("#") or ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip().lower()
        value = value.strip()
        if key == "tags":
            meta[key] = parse_list(value)
        else:
            meta[key] = value.strip("'\"")
    body = "\n".join(lines[end + 1 :])
    return meta, body


def extract_title(meta: dict, body: str) -> tuple[str, str]:
    if meta.get("title"):
        return meta["title"], body
    lines = body.splitlines()
    for i, line in enumerate(lines):
        stripped = line.strip()
        if stripped.startswith("# "):
            title = stripped[2:].strip()
            new_body = "\n".join(lines[i + 1 :]).lstrip()
            return title, new_body
        if stripped:
            break
    return "", body


def parse_iso_date(value: str, path: Path, field: str) -> dt.date:
    try:
        return dt.date.fromisoformat(value.strip()[:10])
    except ValueError:
        raise MetadataError(f"invalid {field} date {value!r}", path) from None


def date_from_path(rel_path: Path) -> Optional[dt.date]:
    """Return the date encoded by a ``YYYY/MM/DD/name.md`` post path."""
    parts = rel_path.parts
    if len(parts) != 4:
        return None
    try:
        return dt.date(int(parts[0]), int(parts[1]), int(parts[2]))
    except ValueError:
        return None


def classify(rel_path: Path) -> Optional[DocumentKind]:
    if rel_path.suffix.lower() != ".md" or rel_path.parts[0] == IMAGES_DIR:
        return None
    depth = len(rel_path.parts)
    if depth == 1:
        return DocumentKind.PAGE
    if depth == 4:
        return DocumentKind.POST
    return None


def is_asset(rel_path: Path) -> bool:
    if rel_path.parts[0] == IMAGES_DIR and len(rel_path.parts) > 1:
        return True
    return len(rel_path.parts) == 1 and rel_path.suffix.lower() in ASSET_SUFFIXES


def read_document(root: Path, rel_path: Path, kind: DocumentKind) -> SourceDocument:
    path = root / rel_path
    try:
        raw_text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise MetadataError(f"not valid UTF-8: {exc.reason} at byte {exc.start}", path) from exc
    except OSError as exc:
        raise MetadataError(f"cannot read source: {exc.strerror or exc}", path) from exc
    meta, body = parse_front_matter(raw_text)
    title, body = extract_title(meta, body)

    published = None
    if kind is DocumentKind.POST:
        published = date_from_path(rel_path)
    if published is None and meta.get("date"):
        published = parse_iso_date(meta["date"], path, "publish")
    if kind is DocumentKind.POST and published is None:
        raise MetadataError("post has no publish date in its path or front-matter", path)

    updated = None
    if meta.get("updated"):
        updated = parse_iso_date(meta["updated"], path, "updated")
        if published is not None and updated < published:
            updated = published

    excerpt = meta.get("excerpt") or meta.get("description") or ""
    return SourceDocument(
        rel_path=rel_path,
        kind=kind,
        body=body,
        title=title,
        tags=tuple(meta.get("tags") or ()),
        excerpt=excerpt,
        published=published,
        updated=updated,
    )


def discover(root: Path) -> ContentSnapshot:
    if not root.is_dir():
        raise ConfigurationError("content directory not found", root)
    documents = []
    assets = []
    for path in list_files(root):
        rel_path = path.relative_to(root)
        kind = classify(rel_path)
        if kind is not None:
            documents.append(read_document(root, rel_path, kind))
        elif is_asset(rel_path):
            assets.append(rel_path)
    return ContentSnapshot(root=root, documents=tuple(documents), assets=tuple(assets))


def normalize_list_spacing(text: str) -> str:
    lines = text.splitlines()
    out: list[str] = []
    in_fence = False
    fence_marker = ""
    for line in lines:
        fence_match = FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(2)
            if not in_fence:
                in_fence = True
                fence_marker = marker
            elif marker == fence_marker:
                in_fence = False
                fence_marker = ""
            out.append(line)
            continue
        if in_fence:
            out.append(line)
            continue
        list_match = LIST_MARKER_RE.match(line)
        if list_match:
            if not list_match.group("indent"):
                if out and out[-1].strip() and not LIST_MARKER_RE.match(out[-1]):
                    out.append("")
        out.append(line)
    return "\n".join(out)
