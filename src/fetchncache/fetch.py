"""
Fetch Client - HTTP GET with bounded retries and jittered exponential backoff.

Transient failures (connection errors, timeouts, broken transfers, 5xx and 429
responses) are retried up to ``max_retries`` times. Anything but a final 200
is reported as a failed Result; the client never writes files.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

import requests

from fetchncache.__version__ import __version__
from fetchncache.result import Err, FetchOutcome, Ok

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = f"fetchncache/{__version__}"


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and backoff bounds (seconds)."""

    max_retries: int = 3
    wait_min: float = 1.0
    wait_max: float = 30.0

    @property
    def max_attempts(self) -> int:
        return max(0, self.max_retries) + 1


def _is_retryable_http_exception(exc: Exception) -> bool:
    """Check if a request exception is worth another attempt.

    Server errors (5xx) and 429 Too Many Requests are retryable, as are
    network-level failures. Other statuses and malformed requests are not.
    """
    if isinstance(exc, requests.exceptions.HTTPError):
        status_code = exc.response.status_code if exc.response is not None else None
        if status_code is None:
            return False
        return status_code >= 500 or status_code == 429
    return isinstance(
        exc,
        (
            requests.exceptions.ConnectionError,
            requests.exceptions.Timeout,
            requests.exceptions.ChunkedEncodingError,
            requests.exceptions.ContentDecodingError,
            requests.exceptions.TooManyRedirects,
        ),
    )


def _backoff_seconds(
    attempt: int,
    policy: RetryPolicy,
    jitter: Callable[[], float] = random.random,
) -> float:
    """Jittered exponential backoff, always within [wait_min, wait_max]."""
    ceiling = min(policy.wait_max, policy.wait_min * (2**attempt))
    return policy.wait_min + (ceiling - policy.wait_min) * jitter()


def _retry_after_seconds(exc: Exception, policy: RetryPolicy) -> float | None:
    """Honor a numeric Retry-After header on 429/503, capped at wait_max."""
    response = getattr(exc, "response", None)
    if response is None or response.status_code not in (429, 503):
        return None
    value = (response.headers or {}).get("Retry-After")
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    return min(max(seconds, 0.0), policy.wait_max)


def _with_retries(
    fn: Callable[[], T],
    *,
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
    jitter: Callable[[], float] = random.random,
    on_retry: Callable[[int, Exception, float], None] | None = None,
) -> T:
    """Execute ``fn`` with the retry policy.

    Raises:
        Exception: the last exception once retries are exhausted, or the first
            non-retryable one
    """
    attempts = policy.max_attempts
    for attempt in range(attempts):
        try:
            return fn()
        except Exception as exc:
            if not _is_retryable_http_exception(exc) or attempt >= attempts - 1:
                raise
            wait = _retry_after_seconds(exc, policy)
            if wait is None:
                wait = _backoff_seconds(attempt, policy, jitter)
            if on_retry:
                on_retry(attempt + 1, exc, wait)
            sleep(wait)
    raise RuntimeError("unreachable")


class FetchClient:
    """Thin wrapper around a ``requests.Session`` for one run."""

    def __init__(
        self,
        *,
        policy: RetryPolicy | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
        jitter: Callable[[], float] = random.random,
        log: logging.Logger | None = None,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = user_agent
        self._sleep = sleep
        self._jitter = jitter
        self._log = log or logger

    def __enter__(self) -> FetchClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def _get(self, url: str, headers: Mapping[str, str]) -> tuple[int, bytes]:
        with self.session.get(url, headers=dict(headers), timeout=self.timeout) as response:
            if response.status_code >= 500 or response.status_code == 429:
                raise requests.exceptions.HTTPError(
                    f"{response.status_code} response from {url}", response=response
                )
            return response.status_code, response.content

    def _on_retry(self, url: str) -> Callable[[int, Exception, float], None]:
        def log_retry(attempt: int, exc: Exception, wait: float) -> None:
            self._log.warning(
                "Retrying %s (retry %d/%d) in %.1fs after: %s",
                url,
                attempt,
                self.policy.max_retries,
                wait,
                exc,
            )

        return log_retry

    def fetch(self, url: str, headers: Mapping[str, str] | None = None) -> FetchOutcome:
        """GET ``url``; Ok(body) on a 200, Err otherwise.

        A 5xx or 429 that is still failing after the last retry is reported as
        ``unexpected_status`` with that status code, not ``fetch_failed``.
        """
        try:
            status_code, body = _with_retries(
                lambda: self._get(url, headers or {}),
                policy=self.policy,
                sleep=self._sleep,
                jitter=self._jitter,
                on_retry=self._on_retry(url),
            )
        except requests.exceptions.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            return Err(
                "unexpected_status",
                f"received status {status_code} after {self.policy.max_attempts} attempts",
                url=url,
                status_code=status_code,
            )
        except requests.exceptions.RequestException as exc:
            return Err(
                "fetch_failed",
                f"fetching URL: {exc}",
                url=url,
                cause=type(exc).__name__,
            )

        if status_code != 200:
            return Err(
                "unexpected_status",
                f"received status {status_code}",
                url=url,
                status_code=status_code,
            )
        return Ok(body, url=url, status_code=status_code, bytes=len(body))


__all__ = ["DEFAULT_TIMEOUT", "DEFAULT_USER_AGENT", "FetchClient", "RetryPolicy"]
