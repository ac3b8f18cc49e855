"""Shared test fixtures for sitemake."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from sitemake.config import Settings

POSTS = {
    "2020/01/01/first.md": (
        "---\n"
        "title: First post\n"
        "excerpt: The very first post.\n"
        "tags: php, linux\n"
        "---\n"
        "Hello **world**.\n"
    ),
    "2020/06/01/middle.md": (
        "---\n"
        "title: Middle post\n"
        "excerpt: Halfway there.\n"
        "tags: [javascript]\n"
        "updated: 2020-07-15\n"
        "---\n"
        "Some text.\n\n"
        "```python\nprint('hi')\n```\n"
    ),
    "2021/01/01/latest.md": (
        "---\n"
        "excerpt: Newest one.\n"
        "---\n"
        "# Latest post\n\n"
        "Body with an image: ![pic](/images/posts/pic.png) ![d](diagram.png)\n"
    ),
}

PAGES = {
    "about.md": "---\ntitle: About\nexcerpt: Who writes this.\n---\nAbout me.\n",
    "uses.md": "---\ntitle: Uses\nexcerpt: Tools & hardware.\n---\n- editor\n- shell\n",
}


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def set_mtime(path: Path, mtime_ns: int) -> None:
    os.utime(path, ns=(mtime_ns, mtime_ns))


def touch_after(path: Path, reference: Path, seconds: int = 10) -> None:
    """Give ``path`` a modification time strictly after ``reference``."""
    set_mtime(path, reference.stat().st_mtime_ns + seconds * 1_000_000_000)


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """A content root with three posts, two pages and a few assets."""
    root = tmp_path / "site"
    for rel, text in {**POSTS, **PAGES}.items():
        write(root / rel, text)
    write(root / "style.css", "body { margin: 0; }\n")
    write(root / "robots.txt", "User-agent: *\n")
    (root / "images" / "posts").mkdir(parents=True)
    (root / "images" / "posts" / "pic.png").write_bytes(b"\x89PNG fake")
    write(root / "drafts" / "ignored.md", "# Not picked up\n")
    return root


@pytest.fixture
def settings(tmp_path: Path, site_dir: Path) -> Settings:
    return Settings(
        content_dir=site_dir,
        output_dir=tmp_path / "dist",
        template_path=None,
        site_url="https://blog.example.org",
        site_title="Example Blog",
        site_description="Notes on the web & the shell.",
        build_workers=2,
    )
