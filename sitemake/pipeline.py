from __future__ import annotations

from collections.abc import Callable
from functools import partial
from pathlib import Path
from typing import Optional

from .aggregate import build_feed, build_index, build_sitemap
from .config import Settings
from .content import ContentSnapshot, discover
from .errors import ConfigurationError
from .extract import read_metadata
from .graph import BuildTarget, DependencyGraph
from .models import Artifact, DocumentKind
from .render import DEFAULT_TEMPLATE, read_template, render_document
from .scheduler import BuildReport, Scheduler
from .utils import clean_output_dir

INDEX_FILE = "index.html"
SITEMAP_FILE = "sitemap.xml"
FEED_FILE = "feed.xml"


def collect_artifacts(snapshot: ContentSnapshot, settings: Settings) -> list[Artifact]:
    """Metadata for every page and post, from front-matter or from the rendered files."""
    if settings.metadata_source != "rendered":
        return [Artifact.from_document(document) for document in snapshot.documents]
    artifacts = []
    for document in snapshot.documents:
        output = settings.output_dir / document.output_rel
        metadata = read_metadata(output, require_published=document.kind is DocumentKind.POST)
        artifacts.append(
            Artifact(
                output_rel=document.output_rel,
                source=document.rel_path,
                kind=document.kind,
                metadata=metadata,
            )
        )
    return artifacts


def _index_action(snapshot: ContentSnapshot, settings: Settings, template: str) -> bytes:
    return build_index(collect_artifacts(snapshot, settings), settings, template)


def _sitemap_action(snapshot: ContentSnapshot, settings: Settings) -> bytes:
    return build_sitemap(collect_artifacts(snapshot, settings), settings.site_url)


def _feed_action(snapshot: ContentSnapshot, settings: Settings) -> bytes:
    return build_feed(collect_artifacts(snapshot, settings), settings)


def plan_targets(
    snapshot: ContentSnapshot, settings: Settings, template: str, template_path: Path
) -> list[BuildTarget]:
    root = snapshot.root
    out = settings.output_dir
    shared = [template_path]
    if settings.config_path is not None and settings.config_path.is_file():
        shared.append(settings.config_path)

    targets = []
    for rel_path in snapshot.assets:
        source = root / rel_path
        targets.append(
            BuildTarget(
                output=out / rel_path,
                dependencies=(source,),
                action=source.read_bytes,
                kind="asset",
                source=source,
            )
        )

    document_outputs = []
    post_outputs = []
    for document in snapshot.documents:
        source = root / document.rel_path
        output = out / document.output_rel
        targets.append(
            BuildTarget(
                output=output,
                dependencies=(source, *shared),
                action=partial(render_document, document, template, settings),
                kind=document.kind.value,
                source=source,
            )
        )
        document_outputs.append(output)
        if document.kind is DocumentKind.POST:
            post_outputs.append(output)

    targets.extend(
        [
            BuildTarget(
                output=out / INDEX_FILE,
                dependencies=(*document_outputs, *shared),
                action=partial(_index_action, snapshot, settings, template),
                kind="index",
                always=True,
            ),
            BuildTarget(
                output=out / SITEMAP_FILE,
                dependencies=tuple(document_outputs),
                action=partial(_sitemap_action, snapshot, settings),
                kind="sitemap",
                always=True,
            ),
            BuildTarget(
                output=out / FEED_FILE,
                dependencies=tuple(post_outputs),
                action=partial(_feed_action, snapshot, settings),
                kind="feed",
                always=True,
            ),
        ]
    )
    return targets


def build_site(
    settings: Settings, on_complete: Optional[Callable[[BuildTarget, str], None]] = None
) -> BuildReport:
    snapshot = discover(settings.content_dir)
    template_path = settings.template_path or DEFAULT_TEMPLATE
    try:
        template = read_template(template_path)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"cannot read template: {exc}", template_path) from exc
    graph = DependencyGraph(plan_targets(snapshot, settings, template, template_path))
    return Scheduler(graph, settings.build_workers, on_complete).run()


def clean_site(settings: Settings, project_root: Path) -> bool:
    return clean_output_dir(settings.output_dir, project_root)
