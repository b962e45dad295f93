from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, TypeVar

import httpx
import structlog
from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt
from tenacity.wait import wait_base

from .errors import BuilderError
from .fs import safe_unlink

_RETRYABLE_STATUSES: set[int] = {408, 429, 500, 502, 503, 504}

log = structlog.get_logger(__name__)

T = TypeVar("T")


class HttpFetchError(BuilderError):
    """Base HTTP error."""


class HttpStatusError(HttpFetchError):
    """
    Non-retryable HTTP status (e.g., 400/401/403/404) or any status not in allowed.
    """

    def __init__(
        self,
        *,
        method: str,
        url: str,
        status_code: int,
        body_snippet: str | None,
    ) -> None:
        msg = f"HTTP {status_code} for {method} {url}"
        if body_snippet:
            msg += f" (body: {body_snippet})"
        super().__init__(msg)
        self.method = method
        self.url = url
        self.status_code = status_code


class HttpRetriesExceeded(HttpFetchError):
    def __init__(
        self, *, method: str, url: str, attempts: int, last_error: BaseException
    ) -> None:
        super().__init__(
            f"HTTP request failed for {method} {url} (attempts={attempts}): {last_error}"
        )
        self.method = method
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


def make_http_client(
    *,
    timeout: httpx.Timeout | None = None,
    follow_redirects: bool = True,
    user_agent: str = "root-builder/0.1",
    headers: Mapping[str, str] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    t = timeout or httpx.Timeout(connect=10.0, read=60.0, write=60.0, pool=10.0)
    return httpx.Client(
        timeout=t,
        follow_redirects=follow_redirects,
        headers={"User-Agent": user_agent, **(headers or {})},
        transport=transport,
    )


def is_retryable_status(code: int) -> bool:
    return code in _RETRYABLE_STATUSES


class DeterministicExponentialBackoff(wait_base):
    def __init__(self, *, base: float = 0.5, cap: float = 4.0) -> None:
        self._base = float(base)
        self._cap = float(cap)

    def __call__(self, retry_state) -> float:
        n = retry_state.attempt_number
        if n <= 1:
            return 0.0
        return min(self._cap, self._base * (2 ** (n - 2)))


class RetryableHttpStatus(Exception):
    def __init__(self, *, method: str, url: str, status_code: int) -> None:
        super().__init__(f"HTTP {status_code} for {method} {url}")
        self.method = method
        self.url = url
        self.status_code = status_code


def _retrying(
    *,
    method: str,
    url: str,
    max_attempts: int,
    base: float,
    cap: float,
) -> Retrying:
    def _before_sleep(retry_state) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        sleep = retry_state.next_action.sleep if retry_state.next_action else None
        log.warning(
            "http.retry",
            method=method,
            url=url,
            attempt=retry_state.attempt_number,
            sleep_s=sleep,
            error=repr(exc) if exc else None,
        )

    return Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=DeterministicExponentialBackoff(base=base, cap=cap),
        retry=retry_if_exception_type(
            (httpx.TimeoutException, httpx.TransportError, RetryableHttpStatus)
        ),
        reraise=False,
        before_sleep=_before_sleep,
    )


def _run_with_retries(
    *,
    method: str,
    url: str,
    max_attempts: int,
    backoff_base: float,
    backoff_cap: float,
    fn: Callable[[], T],
) -> T:
    retrying = _retrying(
        method=method,
        url=url,
        max_attempts=max_attempts,
        base=backoff_base,
        cap=backoff_cap,
    )

    attempt_no = 0

    try:
        for attempt in retrying:
            attempt_no = attempt.retry_state.attempt_number
            with attempt:
                return fn()

    except RetryError as re:
        last = re.last_attempt.exception()
        raise HttpRetriesExceeded(
            method=method,
            url=url,
            attempts=re.last_attempt.attempt_number,
            last_error=last or Exception("unknown"),
        ) from last

    except HttpFetchError:
        raise

    except Exception as e:
        raise HttpRetriesExceeded(
            method=method,
            url=url,
            attempts=max(attempt_no, 1),
            last_error=e,
        ) from e

    raise RuntimeError("unreachable")


def _body_snippet(resp: httpx.Response, *, limit: int = 200) -> str | None:
    """
    Best-effort, bounded snippet for debugging.
    """
    try:
        if resp.is_stream_consumed or resp.is_closed:
            s = (resp.text or "")[:limit].strip()
            return s or None
        buf = bytearray()
        for chunk in resp.iter_bytes(chunk_size=min(4096, limit * 4)):
            if not chunk:
                continue
            buf.extend(chunk)
            if len(buf) >= limit * 4:
                break
        s = bytes(buf).decode("utf-8", errors="replace")[:limit].strip()
        return s or None
    except Exception:
        return None


def _raise_for_disallowed(resp: httpx.Response, *, method: str, url: str) -> None:
    snippet = _body_snippet(resp)
    resp.close()

    if is_retryable_status(resp.status_code):
        raise RetryableHttpStatus(method=method, url=url, status_code=resp.status_code)

    raise HttpStatusError(
        method=method,
        url=url,
        status_code=resp.status_code,
        body_snippet=snippet,
    )


def request_with_retries(
    client: httpx.Client,
    *,
    method: str,
    url: str,
    headers: Mapping[str, str] | None = None,
    params: Mapping[str, str] | None = None,
    json: Any = None,
    content_path: Path | None = None,
    allowed_statuses: Iterable[int] = (200,),
    max_attempts: int = 3,
    backoff_base: float = 0.5,
    backoff_cap: float = 4.0,
) -> httpx.Response:
    """
    Send one request, retrying transport errors and transient statuses.

    `content_path` is reopened and streamed on every attempt so uploads can
    be retried without holding the file in memory.
    """
    allowed = set(allowed_statuses)

    def _do() -> httpx.Response:
        if content_path is None:
            resp = client.request(method, url, headers=headers, params=params, json=json)
        else:
            with content_path.open("rb") as body:
                resp = client.request(
                    method, url, headers=headers, params=params, content=body
                )

        if resp.status_code in allowed:
            return resp

        _raise_for_disallowed(resp, method=method, url=url)
        raise RuntimeError("unreachable")

    return _run_with_retries(
        method=method,
        url=url,
        max_attempts=max_attempts,
        backoff_base=backoff_base,
        backoff_cap=backoff_cap,
        fn=_do,
    )


@dataclass(frozen=True, slots=True)
class HttpDownloadResult:
    status_code: int
    final_url: str
    content_type: str | None
    bytes_written: int


def stream_get_to_file_with_retries(
    client: httpx.Client,
    *,
    url: str,
    dest_path: os.PathLike[str] | str,
    headers: Mapping[str, str] | None = None,
    max_attempts: int = 1,
    chunk_bytes: int = 1024 * 1024,
    backoff_base: float = 0.5,
    backoff_cap: float = 4.0,
) -> HttpDownloadResult:
    """
    Stream a 200 GET response into dest_path. Any partial file is removed on failure.
    """
    dest = Path(dest_path)

    def _do() -> HttpDownloadResult:
        safe_unlink(dest)

        with client.stream("GET", url, headers=headers) as resp:
            if resp.status_code != 200:
                _raise_for_disallowed(resp, method="GET", url=url)

            dest.parent.mkdir(parents=True, exist_ok=True)

            total = 0
            try:
                with dest.open("wb") as f:
                    for chunk in resp.iter_bytes(chunk_size=chunk_bytes):
                        if not chunk:
                            continue
                        f.write(chunk)
                        total += len(chunk)
                    f.flush()
                    os.fsync(f.fileno())
            except Exception:
                safe_unlink(dest)
                raise

            content_type = (resp.headers.get("Content-Type") or "").strip() or None
            return HttpDownloadResult(
                status_code=resp.status_code,
                final_url=str(resp.url),
                content_type=content_type,
                bytes_written=total,
            )

    try:
        return _run_with_retries(
            method="GET",
            url=url,
            max_attempts=max_attempts,
            backoff_base=backoff_base,
            backoff_cap=backoff_cap,
            fn=_do,
        )
    except Exception:
        safe_unlink(dest)
        raise
