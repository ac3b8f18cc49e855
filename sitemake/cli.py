from __future__ import annotations

import argparse
import os
import sys
import time
from pathlib import Path
from typing import Optional

from .config import (
    DEFAULTS,
    METADATA_SOURCES,
    Settings,
    load_config,
    resolve_path,
    resolve_template,
    resolve_workers,
)
from .errors import SiteMakeError
from .graph import BuildTarget
from .pipeline import build_site, clean_site
from .scheduler import RENDERED
from .utils import parse_bool, parse_int


def make_settings(args: argparse.Namespace) -> Settings:
    config_path = Path(args.config)
    return Settings(
        content_dir=resolve_path(args.content, config_path),
        output_dir=resolve_path(args.output, config_path),
        template_path=resolve_template(args.template, config_path),
        site_url=args.site_url.rstrip("/"),
        site_title=args.site_title,
        site_description=args.site_description,
        config_path=config_path.resolve() if config_path.is_file() else None,
        build_workers=resolve_workers(args.build_workers, os.cpu_count()),
        metadata_source=args.metadata_source,
    )


def build_parser(config: dict, config_default: str) -> argparse.ArgumentParser:
    def cfg_value(key: str) -> object:
        value = config.get(key)
        return DEFAULTS[key] if value is None else value

    def cfg_str(key: str) -> str:
        return str(cfg_value(key))

    parser = argparse.ArgumentParser(prog="sitemake", description="Incremental Markdown blog builder.")
    parser.add_argument(
        "command",
        nargs="?",
        default="build",
        choices=["build", "clean"],
        help="build the site (default) or remove all generated output.",
    )
    parser.add_argument("--config", default=config_default, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("--content", default=cfg_str("content"), help="Directory containing pages, posts and assets.")
    parser.add_argument("--output", default=cfg_str("output"), help="Output directory for the site.")
    parser.add_argument("--template", default=cfg_str("template"), help="Master HTML template.")
    parser.add_argument("--site-url", default=cfg_str("site_url"), help="Public site URL used for links, sitemap and feed.")
    parser.add_argument("--site-title", default=cfg_str("site_title"), help="Site title.")
    parser.add_argument("--site-description", default=cfg_str("site_description"), help="Site description.")
    parser.add_argument(
        "--build-workers",
        default=parse_int(cfg_value("build_workers"), 0),
        type=int,
        help="Number of worker threads for rendering (0 = auto).",
    )
    parser.add_argument(
        "--metadata-source",
        default=cfg_str("metadata_source"),
        choices=METADATA_SOURCES,
        help="Read index/sitemap/feed metadata from front-matter or from the rendered HTML.",
    )
    parser.add_argument(
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=parse_bool(cfg_value("verbose")),
        help="Print every rendered target.",
    )
    return parser


def run(args: argparse.Namespace) -> None:
    settings = make_settings(args)
    if args.command == "clean":
        if clean_site(settings, Path.cwd()):
            print(f"Removed {settings.output_dir}")
        return

    def report_target(target: BuildTarget, status: str) -> None:
        if status == RENDERED:
            print(f"{target.kind}: {target.output}")

    start = time.perf_counter()
    report = build_site(settings, report_target if args.verbose else None)
    elapsed = time.perf_counter() - start
    print(
        f"Rendered {len(report.rendered)}, unchanged {len(report.unchanged)}, "
        f"up to date {len(report.skipped)}."
    )
    print(f"Build completed in {elapsed:.2f}s.")


def main(argv: Optional[list[str]] = None) -> int:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", default="site.toml")
    pre_args, _ = pre_parser.parse_known_args(argv)
    try:
        config = load_config(Path(pre_args.config))
        args = build_parser(config, pre_args.config).parse_args(argv)
        run(args)
    except SiteMakeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0
