"""Unit tests for template filling and Markdown rendering."""

from __future__ import annotations

import datetime as dt
from pathlib import Path

from sitemake.config import Settings
from sitemake.models import DocumentKind, SourceDocument
from sitemake.render import DEFAULT_TEMPLATE, read_template, render_document, render_markdown, render_template


def test_template_values_are_not_expanded_again() -> None:
    template = "<p>{{excerpt}}</p><a href=\"{{url}}\"></a>{{content}}"
    output = render_template(template, excerpt="Write {{url}} or {{content}}", url="/x.html", content="{{excerpt}}")
    assert output == '<p>Write {{url}} or {{content}}</p><a href="/x.html"></a>{{excerpt}}'


def test_unknown_placeholders_are_kept() -> None:
    assert render_template("{{title}} {{missing}}", title="T") == "T {{missing}}"


def test_document_text_with_placeholder_syntax(settings: Settings) -> None:
    document = SourceDocument(
        rel_path=Path("2020/01/01/syntax.md"),
        kind=DocumentKind.POST,
        body="Use `{{title}}` in templates.",
        title="Template syntax",
        excerpt="About {{url}} and {{content}}.",
        published=dt.date(2020, 1, 1),
    )
    html_text = render_document(document, read_template(DEFAULT_TEMPLATE), settings).decode("utf-8")
    assert '<meta name="description" content="About {{url}} and {{content}}.">' in html_text
    assert "<code>{{title}}</code>" in html_text


def test_image_sources_are_left_as_written() -> None:
    html_text = render_markdown("![d](diagram.png) ![p](/images/p.png) ![r](../up.png)")
    assert 'src="diagram.png"' in html_text
    assert 'src="/images/p.png"' in html_text
    assert 'src="../up.png"' in html_text
