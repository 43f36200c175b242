"""Fetch HTTP targets from a YAML config and cache the responses to disk."""

from fetchncache.__version__ import __version__
from fetchncache.config import RunConfig, Target, load_config
from fetchncache.driver import RunOptions, RunSummary, run_targets
from fetchncache.fetch import FetchClient, RetryPolicy
from fetchncache.formatting import format_json
from fetchncache.headers import parse_headers
from fetchncache.paths import derive_latest_path, parse_path_spec, resolve_path
from fetchncache.patterns import parse_pattern, resolve_pattern
from fetchncache.processor import process_target

__all__ = [
    "__version__",
    "FetchClient",
    "RetryPolicy",
    "RunConfig",
    "RunOptions",
    "RunSummary",
    "Target",
    "derive_latest_path",
    "format_json",
    "load_config",
    "parse_headers",
    "parse_path_spec",
    "parse_pattern",
    "process_target",
    "resolve_path",
    "resolve_pattern",
    "run_targets",
]
