from __future__ import annotations

import html
import os
import re
import tempfile
from pathlib import Path

import markdown

from .content import normalize_list_spacing
from .models import SourceDocument
from .utils import join_url

TAG_RE = re.compile(r"<[^>]+>")
PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")
DEFAULT_TEMPLATE = Path(__file__).parent / "templates" / "master.html"
MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "toc", "codehilite"]
MARKDOWN_CONFIGS = {"codehilite": {"guess_lang": False}}


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


def render_template(template: str, **context: str) -> str:
    """Fill ``{{key}}`` placeholders in a single pass; unknown keys are kept."""

    def repl(match: re.Match) -> str:
        return context.get(match.group(1), match.group(0))

    return PLACEHOLDER_RE.sub(repl, template)


def read_template(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def render_markdown(text: str) -> str:
    md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS, extension_configs=MARKDOWN_CONFIGS)
    return md.convert(normalize_list_spacing(text))


def build_dates(document: SourceDocument) -> str:
    if document.published is None:
        return ""
    published = document.published.isoformat()
    parts = [f'<time pubdate datetime="{published}">{published}</time>']
    if document.updated is not None:
        updated = document.updated.isoformat()
        parts.append(f'<time datetime="{updated}">{updated}</time>')
    return "\n".join(parts)


def build_tags(tags: tuple[str, ...]) -> str:
    if not tags:
        return ""
    return f'<div class="tags">{html.escape(", ".join(tags))}</div>'


def render_page(
    template: str,
    settings: object,
    *,
    title: str,
    url: str,
    excerpt: str,
    content: str,
    dates: str = "",
    tags: str = "",
) -> bytes:
    site_title = settings.site_title
    page_title = title if title == site_title else f"{title} | {site_title}"
    html_doc = render_template(
        template,
        title=html.escape(title),
        page_title=html.escape(page_title),
        excerpt=html.escape(excerpt),
        url=html.escape(url),
        feed_url=html.escape(join_url(settings.site_url, "feed.xml")),
        site_title=html.escape(site_title),
        dates=dates,
        tags=tags,
        content=content,
    )
    return html_doc.encode("utf-8")


def render_document(document: SourceDocument, template: str, settings: object) -> bytes:
    """Render one source document through the master template."""
    return render_page(
        template,
        settings,
        title=document.title,
        url=join_url(settings.site_url, document.output_rel.as_posix()),
        excerpt=document.excerpt,
        content=render_markdown(document.body),
        dates=build_dates(document),
        tags=build_tags(document.tags),
    )


def write_bytes(path: Path, data: bytes) -> None:
    """Replace ``path`` with ``data`` without exposing partial content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
