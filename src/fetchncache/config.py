"""
Configuration loading for fetchncache.

The YAML file is parsed with ``yaml.safe_load``, checked against the bundled
``config.schema.json`` (Draft 7) and then validated target by target. Any
problem raises a ``ConfigError`` subclass before a single target runs.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import cache
from importlib import resources
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml
from jsonschema import Draft7Validator

from fetchncache.exceptions import (
    ConfigError,
    ConfigValidationError,
    HeaderError,
    PathResolutionError,
    YamlParseError,
)
from fetchncache.headers import parse_headers
from fetchncache.paths import PathSpec, parse_path_spec, validate_path_spec

CONFIG_SCHEMA = "config"
ALLOWED_SCHEMES = {"http", "https"}


@dataclass(frozen=True)
class Target:
    """One configured URL-to-file fetch job."""

    name: str
    url: str
    path: PathSpec
    headers: tuple[str, ...] = ()


@dataclass(frozen=True)
class RunConfig:
    targets: tuple[Target, ...]
    log_file: str | None = None
    source: str | None = field(default=None, compare=False)


@cache
def load_schema(schema_name: str) -> dict[str, Any]:
    schema_path = resources.files("fetchncache").joinpath("schemas", f"{schema_name}.schema.json")
    return json.loads(schema_path.read_text(encoding="utf-8"))


def validate_schema(config: Any, schema_name: str = CONFIG_SCHEMA, *, config_path: Path | None = None) -> None:
    schema = load_schema(schema_name)
    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(config), key=lambda exc: list(exc.path))
    if not errors:
        return
    location = str(config_path) if config_path else "<config>"
    lines = [f"Schema validation failed for {location} ({schema_name})."]
    error_details: list[dict[str, str]] = []
    for error in errors[:10]:
        path = ".".join(str(p) for p in error.path) if error.path else "<root>"
        lines.append(f"- {path}: {error.message}")
        error_details.append({"path": path, "message": error.message})
    if len(errors) > 10:
        lines.append(f"... and {len(errors) - 10} more errors.")
    raise ConfigValidationError(
        "\n".join(lines),
        context={
            "path": location,
            "schema": schema_name,
            "errors": error_details,
            "truncated": len(errors) > 10,
        },
    )


def validate_url(url: str) -> str | None:
    """Return an error message when ``url`` is not an absolute http(s) URL."""
    if not url:
        return "URL is required"
    try:
        parsed = urlparse(url)
    except ValueError as exc:
        return f"invalid URL {url!r}: {exc}"
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        return f"invalid URL {url!r}: scheme must be http or https"
    if not parsed.netloc:
        return f"invalid URL {url!r}: missing host"
    return None


def _build_target(index: int, raw: dict[str, Any]) -> Target:
    url = raw.get("url") or ""
    url_error = validate_url(url)
    if url_error:
        raise ConfigValidationError(
            f"target {index}: {url_error}",
            context={"target": index, "url": url},
        )

    headers = tuple(line for line in raw.get("headers") or () if line)
    try:
        path = parse_path_spec(raw.get("path"))
        validate_path_spec(path)
        parse_headers(headers)
    except (PathResolutionError, HeaderError) as exc:
        raise ConfigValidationError(
            f"target {index}: {exc.message}",
            context={"target": index, "reason": exc.code, **exc.context},
        ) from exc

    return Target(name=str(raw.get("name") or ""), url=url, path=path, headers=headers)


def parse_config(data: Any, *, config_path: Path | None = None) -> RunConfig:
    """Validate decoded YAML and build the immutable RunConfig."""
    if not isinstance(data, dict) or not data.get("targets"):
        raise ConfigError(
            "no targets specified in config",
            context={"path": str(config_path) if config_path else "<config>"},
        )
    validate_schema(data, config_path=config_path)
    targets = tuple(_build_target(i, raw) for i, raw in enumerate(data["targets"], start=1))
    return RunConfig(
        targets=targets,
        log_file=data.get("logfile") or None,
        source=str(config_path) if config_path else None,
    )


def load_config(path: str | Path) -> RunConfig:
    """Read, parse and validate the YAML config at ``path``."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            f"reading config file {path}: {exc}",
            context={"path": str(path)},
        ) from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise YamlParseError(
            f"YAML parse error in {path}: {exc}",
            context={"path": str(path), "error": str(exc)},
        ) from exc
    return parse_config(data, config_path=path)


__all__ = [
    "RunConfig",
    "Target",
    "load_config",
    "load_schema",
    "parse_config",
    "validate_schema",
    "validate_url",
]
