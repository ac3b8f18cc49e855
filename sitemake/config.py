from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError

try:
    import tomllib as toml
except ImportError:
    try:
        import tomli as toml
    except ImportError:  # pragma: no cover - optional dependency
        toml = None

try:
    import yaml
except ImportError:  # pragma: no cover - optional dependency
    yaml = None

METADATA_SOURCES = ("front-matter", "rendered")
DEFAULTS = {
    "content": "site",
    "output": "dist",
    "template": "templates/master.html",
    "site_url": "https://example.com",
    "site_title": "My Blog",
    "site_description": "A blog.",
    "build_workers": 0,
    "metadata_source": "front-matter",
    "verbose": False,
}


@dataclass(frozen=True)
class Settings:
    content_dir: Path
    output_dir: Path
    template_path: Optional[Path]
    site_url: str
    site_title: str
    site_description: str
    config_path: Optional[Path] = None
    build_workers: int = 1
    metadata_source: str = "front-matter"


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        if toml is None:
            raise ConfigurationError("TOML config requires tomllib (Python 3.11+) or tomli", path)
        try:
            data = toml.loads(text)
        except toml.TOMLDecodeError as exc:
            raise ConfigurationError(f"invalid TOML: {exc}", path) from exc
    elif suffix in {".yml", ".yaml"}:
        if yaml is None:
            raise ConfigurationError("YAML config requires PyYAML", path)
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"invalid YAML: {exc}", path) from exc
        if data is None:
            return {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"invalid JSON: {exc}", path) from exc
    if not isinstance(data, dict):
        raise ConfigurationError("config must be a mapping", path)
    return data


def resolve_path(value: str, config_path: Path) -> Path:
    """Resolve ``value`` relative to the directory holding the config file."""
    path = Path(value)
    if path.is_absolute():
        return path
    return config_path.resolve().parent / path


def resolve_template(value: str, config_path: Path) -> Optional[Path]:
    """Return the configured template, or ``None`` to use the built-in one."""
    path = resolve_path(value, config_path)
    if path.is_file():
        return path
    if value != DEFAULTS["template"]:
        raise ConfigurationError("template not found", path)
    return None


def resolve_workers(value: int, cpu_count: Optional[int]) -> int:
    if value <= 0:
        value = cpu_count or 1
    return max(1, min(value, 32))
