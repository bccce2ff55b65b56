from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import TransportError
from .tracing import TRACE_HEADER, TraceContext

logger = logging.getLogger(__name__)

ResponseHook = Callable[[requests.Response], None]
JsonBody = dict[str, Any] | list[Any] | None

# Reads only. An acceptance POST is replayed by the caller with the same idempotency key.
_RETRYABLE_METHODS = frozenset({"GET", "HEAD"})


@dataclass
class LastOperation:
    method: str
    path: str
    attempts: int
    duration_ms: int
    result: str
    trace_id: str | None


@dataclass
class HttpClient:
    config: ClientConfig
    trace: TraceContext | None = None
    session: requests.Session | None = None
    after_response: ResponseHook | None = None
    last_operation: LastOperation | None = None

    def __post_init__(self) -> None:
        if self.trace is None:
            self.trace = TraceContext()
        if self.session is None:
            pool = HTTPAdapter(
                pool_connections=self.config.max_connections,
                pool_maxsize=self.config.max_connections,
            )
            self.session = requests.Session()
            for scheme in ("http://", "https://"):
                self.session.mount(scheme, pool)

    def url_for(self, path: str) -> str:
        return urljoin(self.config.api_base_url.rstrip("/") + "/", path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> JsonBody:
        verb = method.upper()
        outgoing = {"Accept": "application/json", **(headers or {})}
        outgoing[TRACE_HEADER] = self.trace.ensure()

        started = time.monotonic()
        response, attempts = self._dispatch(verb, path, outgoing, json_body, params, started)
        if self.after_response:
            self.after_response(response)
        self.trace.adopt(response.headers.get(TRACE_HEADER))

        if response.ok:
            self._finish(verb, path, attempts, started, "success")
            return response.json() if response.content else None

        payload = _error_payload(response)
        self.trace.adopt(payload.get("trace_id"))
        self._finish(verb, path, attempts, started, f"http_{response.status_code}")
        raise map_error(response.status_code, payload, self.trace.trace_id)

    def _dispatch(
        self,
        verb: str,
        path: str,
        headers: dict[str, str],
        json_body: dict[str, Any] | None,
        params: dict[str, Any] | None,
        started: float,
    ) -> tuple[requests.Response, int]:
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        budget = self.config.retries + 1 if verb in _RETRYABLE_METHODS else 1
        url = self.url_for(path)
        attempt = 0
        while True:
            attempt += 1
            try:
                response = self.session.request(
                    method=verb,
                    url=url,
                    headers=headers,
                    json=json_body,
                    params=params,
                    timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException as exc:
                if attempt >= budget:
                    self._finish(verb, path, attempt, started, "transport_error")
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message=str(exc),
                        details={"type": type(exc).__name__},
                        trace_id=self.trace.trace_id,
                        status_code=0,
                    ) from exc
                reason = type(exc).__name__
            else:
                if response.status_code < 500 or attempt >= budget:
                    return response, attempt
                reason = f"http_{response.status_code}"
            logger.warning("http_retry", extra={"method": verb, "path": path, "attempt": attempt, "reason": reason})
            time.sleep(self.config.retry_backoff_seconds * (2 ** (attempt - 1)))

    def _finish(self, verb: str, path: str, attempts: int, started: float, result: str) -> None:
        self.last_operation = LastOperation(
            method=verb,
            path=path,
            attempts=attempts,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
            trace_id=self.trace.trace_id if self.trace else None,
        )


def _error_payload(response: requests.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except (json.JSONDecodeError, ValueError):
        return {"message": response.text or response.reason}
    return body if isinstance(body, dict) else {"message": str(body)}
