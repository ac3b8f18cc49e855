from __future__ import annotations

import datetime as dt
import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class DocumentKind(str, enum.Enum):
    PAGE = "page"
    POST = "post"


@dataclass(frozen=True)
class SourceDocument:
    """One Markdown source, read once per build."""

    rel_path: Path
    kind: DocumentKind
    body: str
    title: str
    tags: tuple[str, ...] = ()
    excerpt: str = ""
    published: Optional[dt.date] = None
    updated: Optional[dt.date] = None

    @property
    def output_rel(self) -> Path:
        return self.rel_path.with_suffix(".html")

    @property
    def link(self) -> str:
        return "/" + self.output_rel.as_posix()

    @property
    def last_modified(self) -> Optional[dt.date]:
        return self.updated or self.published


@dataclass(frozen=True)
class ArtifactMetadata:
    title: str
    published: Optional[dt.date] = None
    updated: Optional[dt.date] = None
    tags: tuple[str, ...] = ()
    excerpt: str = ""

    @property
    def last_modified(self) -> Optional[dt.date]:
        return self.updated or self.published


@dataclass(frozen=True)
class Artifact:
    """A rendered page or post as seen by the aggregators."""

    output_rel: Path
    source: Path
    kind: DocumentKind
    metadata: ArtifactMetadata

    @property
    def link(self) -> str:
        return "/" + self.output_rel.as_posix()

    @classmethod
    def from_document(cls, document: SourceDocument) -> "Artifact":
        return cls(
            output_rel=document.output_rel,
            source=document.rel_path,
            kind=document.kind,
            metadata=ArtifactMetadata(
                title=document.title,
                published=document.published,
                updated=document.updated,
                tags=document.tags,
                excerpt=document.excerpt,
            ),
        )
