"""
Path Resolver - Static and templated target paths.

A target ``path`` in the config YAML is either a plain string:

    path: ./cache/data.json

or a single-element list holding a template and a pattern:

    path:
      - string: ./cache/data-{pattern}.json
        pattern: DateTime-UTC-slug

Every ``{pattern}`` occurrence in the template is replaced by the resolved
pattern (see ``fetchncache.patterns``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePath
from typing import Any, Union

from fetchncache.exceptions import (
    EmptyPathError,
    InvalidPathSpecError,
    MalformedPathSpecError,
    MissingPlaceholderError,
)
from fetchncache.patterns import parse_pattern, resolve_pattern

PLACEHOLDER = "{pattern}"
LATEST_STEM = "latest"
PRETTY_JSON_SUFFIX = ".pp.json"


@dataclass(frozen=True)
class LiteralPath:
    path: str


@dataclass(frozen=True)
class TemplatedPath:
    template: str
    pattern: str


PathSpec = Union[LiteralPath, TemplatedPath]


def parse_path_spec(raw: Any) -> PathSpec:
    """Turn the YAML ``path`` value into a PathSpec.

    Raises:
        MalformedPathSpecError: the template mapping lacks ``string`` or ``pattern``
        InvalidPathSpecError: any shape other than a string or a one-mapping list
    """
    if isinstance(raw, str):
        return LiteralPath(raw)
    if not isinstance(raw, list):
        raise InvalidPathSpecError(
            "path must be a string or a list with one configuration object",
            context={"path": repr(raw)},
        )
    if len(raw) != 1:
        raise InvalidPathSpecError(
            "path array must contain exactly one configuration object",
            context={"entries": len(raw)},
        )
    entry = raw[0]
    if not isinstance(entry, dict):
        raise InvalidPathSpecError(
            "path configuration must be an object",
            context={"path": repr(entry)},
        )
    template = entry.get("string")
    pattern = entry.get("pattern")
    if not isinstance(template, str) or not isinstance(pattern, str):
        raise MalformedPathSpecError(
            "path configuration must have 'string' and 'pattern' fields",
            context={"fields": sorted(str(key) for key in entry)},
        )
    return TemplatedPath(template=template, pattern=pattern)


def validate_path_spec(spec: PathSpec) -> None:
    """Check a PathSpec without resolving the clock-dependent part."""
    if isinstance(spec, LiteralPath):
        if not spec.path:
            raise EmptyPathError("path cannot be empty")
        return
    _check_template(spec)
    parse_pattern(spec.pattern)


def _check_template(spec: TemplatedPath) -> None:
    if not spec.template:
        raise EmptyPathError("path template cannot be empty")
    if PLACEHOLDER not in spec.template:
        raise MissingPlaceholderError(
            f"path template must contain {PLACEHOLDER} placeholder",
            context={"template": spec.template},
        )


def resolve_path(spec: PathSpec, now: datetime | None = None) -> str:
    """Return the concrete file path for ``spec``.

    The pattern is resolved against ``now`` (wall clock when omitted), so two
    targets resolved a moment apart may legitimately differ.
    """
    if isinstance(spec, LiteralPath):
        if not spec.path:
            raise EmptyPathError("path cannot be empty")
        return spec.path
    if isinstance(spec, TemplatedPath):
        _check_template(spec)
        value = resolve_pattern(spec.pattern, now)
        return spec.template.replace(PLACEHOLDER, value)
    raise InvalidPathSpecError(
        "path must be a string or configuration object",
        context={"path": repr(spec)},
    )


def _extension(filename: str) -> str:
    dot = filename.rfind(".")
    return filename[dot:] if dot >= 0 else ""


def derive_latest_path(resolved_path: str) -> str:
    """Stable sibling path for the rolling "latest" copy.

    Examples:
        ./cache/data.pp.json        -> cache/latest.pp.json
        ./cache/data-20250101.json  -> cache/latest.json
        ./cache/data.bin            -> cache/latest.bin
        ./cache/data                -> cache/latest
    """
    path = PurePath(resolved_path)
    filename = path.name
    if PRETTY_JSON_SUFFIX in filename:
        name = LATEST_STEM + PRETTY_JSON_SUFFIX
    elif filename.endswith(".json"):
        name = LATEST_STEM + ".json"
    else:
        name = LATEST_STEM + _extension(filename)
    return str(path.parent / name)


def pretty_json_path(target_path: str) -> str:
    """``data.json`` -> ``data.pp.json`` (suffix matched case-insensitively)."""
    if target_path.lower().endswith(".json"):
        target_path = target_path[: -len(".json")]
    return target_path + PRETTY_JSON_SUFFIX


__all__ = [
    "LiteralPath",
    "PathSpec",
    "TemplatedPath",
    "derive_latest_path",
    "parse_path_spec",
    "pretty_json_path",
    "resolve_path",
    "validate_path_spec",
]
