from __future__ import annotations

import html
from collections.abc import Iterable

from .errors import AggregationError
from .models import Artifact, DocumentKind
from .render import render_page
from .utils import iso_date, join_url

EMPTY_FEED_UPDATED = "1970-01-01T00:00:00Z"


def check_artifact(artifact: Artifact) -> None:
    if not artifact.metadata.title:
        raise AggregationError("missing title", artifact.source)
    if artifact.kind is DocumentKind.POST and artifact.metadata.published is None:
        raise AggregationError("missing publish date", artifact.source)


def sorted_posts(artifacts: Iterable[Artifact]) -> list[Artifact]:
    """Posts newest first; equal dates keep path order."""
    posts = [artifact for artifact in artifacts if artifact.kind is DocumentKind.POST]
    for post in posts:
        check_artifact(post)
    posts.sort(key=lambda a: a.output_rel.as_posix())
    posts.sort(key=lambda a: a.metadata.published, reverse=True)
    return posts


def sorted_pages(artifacts: Iterable[Artifact]) -> list[Artifact]:
    pages = [artifact for artifact in artifacts if artifact.kind is DocumentKind.PAGE]
    for page in pages:
        check_artifact(page)
    return sorted(pages, key=lambda a: (a.metadata.title.lower(), a.output_rel.as_posix()))


def build_post_list(posts: list[Artifact]) -> str:
    if not posts:
        return '<p class="empty">No posts yet.</p>'
    items = []
    for post in posts:
        meta = post.metadata
        date = meta.published.isoformat()
        tags = f" ({html.escape(', '.join(meta.tags))})" if meta.tags else ""
        items.append(
            f'<li><time datetime="{date}">{date}</time>: '
            f'<a href="{html.escape(post.link)}">{html.escape(meta.title)}</a>{tags}</li>'
        )
    return '<ul class="post-list">\n' + "\n".join(items) + "\n</ul>"


def build_page_list(pages: list[Artifact]) -> str:
    if not pages:
        return '<p class="empty">No pages yet.</p>'
    items = []
    for page in pages:
        meta = page.metadata
        excerpt = f": {html.escape(meta.excerpt)}" if meta.excerpt else ""
        items.append(f'<li><a href="{html.escape(page.link)}">{html.escape(meta.title)}</a>{excerpt}</li>')
    return '<ul class="page-list">\n' + "\n".join(items) + "\n</ul>"


def build_index(artifacts: Iterable[Artifact], settings: object, template: str) -> bytes:
    """Listing of all posts (newest first) followed by all pages (by title)."""
    artifacts = list(artifacts)
    posts = sorted_posts(artifacts)
    pages = sorted_pages(artifacts)
    content = "\n".join(
        [
            '<h2 id="posts">Posts</h2>',
            build_post_list(posts),
            '<h2 id="pages">Pages</h2>',
            build_page_list(pages),
        ]
    )
    return render_page(
        template,
        settings,
        title=settings.site_title,
        url=join_url(settings.site_url, "") + "/",
        excerpt=settings.site_description,
        content=content,
    )


def build_sitemap(artifacts: Iterable[Artifact], site_url: str) -> bytes:
    artifacts = list(artifacts)
    posts = sorted(
        (a for a in artifacts if a.kind is DocumentKind.POST), key=lambda a: a.output_rel.as_posix()
    )
    pages = sorted(
        (a for a in artifacts if a.kind is DocumentKind.PAGE), key=lambda a: a.output_rel.as_posix()
    )
    urls = []
    for post in posts:
        check_artifact(post)
        urls.append((join_url(site_url, post.link), post.metadata.last_modified))
    urls.append((join_url(site_url, "") + "/", None))
    for page in pages:
        check_artifact(page)
        urls.append((join_url(site_url, page.link), None))

    items = []
    for url, lastmod in urls:
        lines = ["<url>", f"<loc>{html.escape(url)}</loc>"]
        if lastmod:
            lines.append(f"<lastmod>{lastmod.isoformat()}</lastmod>")
        lines.append("</url>")
        items.append("\n".join(lines))
    sitemap = "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            *items,
            "</urlset>",
        ]
    )
    return (sitemap + "\n").encode("utf-8")


def build_feed(artifacts: Iterable[Artifact], settings: object) -> bytes:
    """Atom feed with one entry per post, newest first."""
    site_url = settings.site_url.rstrip("/")
    feed_url = join_url(site_url, "feed.xml")
    posts = sorted_posts(artifacts)
    if posts:
        updated = iso_date(max(post.metadata.last_modified for post in posts))
    else:
        updated = EMPTY_FEED_UPDATED

    entries = []
    for post in posts:
        meta = post.metadata
        url = html.escape(join_url(site_url, post.link))
        title = html.escape(meta.title)
        lines = [
            "<entry>",
            f'<title type="html">{title}</title>',
            f'<link href="{url}" rel="alternate" type="text/html" title="{title}"/>',
            f"<published>{iso_date(meta.published)}</published>",
            f"<updated>{iso_date(meta.last_modified)}</updated>",
            f"<id>{url}</id>",
        ]
        lines.extend(f'<category term="{html.escape(tag)}"/>' for tag in meta.tags)
        lines.append(f'<summary type="html">{html.escape(meta.excerpt)}</summary>')
        lines.append("</entry>")
        entries.append("\n".join(lines))

    feed = "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<feed xmlns="http://www.w3.org/2005/Atom" xml:lang="en">',
            f'<link href="{html.escape(feed_url)}" rel="self" type="application/atom+xml"/>',
            f'<link href="{html.escape(site_url)}/" rel="alternate" type="text/html" hreflang="en"/>',
            f"<updated>{updated}</updated>",
            f"<id>{html.escape(feed_url)}</id>",
            f'<title type="html">{html.escape(settings.site_title)}</title>',
            f"<subtitle>{html.escape(settings.site_description)}</subtitle>",
            *entries,
            "</feed>",
        ]
    )
    return (feed + "\n").encode("utf-8")
