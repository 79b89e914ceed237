"""
Authenticated request pipeline for the notification service.

Every REST call goes through ``RequestPipeline.request``, which:
- Adds the JSON content type and the session's bearer credential
- Classifies failures into NETWORK / HTTP_4XX / HTTP_5XX / PARSE
- Logs and toasts each failure once, then re-raises it to the caller
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Callable, Optional

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from .auth import Session, TokenBuilder, build_token
from .metrics import MetricsCollector
from .view import ViewSinks

log = structlog.get_logger()


class ErrorCause(str, Enum):
    NETWORK = "NETWORK"
    HTTP_4XX = "HTTP_4XX"
    HTTP_5XX = "HTTP_5XX"
    PARSE = "PARSE"


class ErrorResponse(BaseModel):
    """Error body returned by the notification service."""
    timestamp: Optional[str] = None
    status: int
    error: str
    message: str


class PipelineError(Exception):
    """A failed request: transport failure, error status, or undecodable error body."""

    def __init__(self, cause: ErrorCause, status_code: int | None = None, body: Any = None):
        self.cause = cause
        self.status_code = status_code
        self.body = body
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if isinstance(self.body, dict) and self.body.get("message"):
            return str(self.body["message"])
        if isinstance(self.body, str) and self.body and self.cause is ErrorCause.NETWORK:
            return self.body
        return "Request failed"

    @property
    def detail(self) -> ErrorResponse | None:
        if not isinstance(self.body, dict):
            return None
        try:
            return ErrorResponse.model_validate(self.body)
        except ValidationError:
            return None

    def __repr__(self) -> str:
        return f"PipelineError(cause={self.cause.value}, status_code={self.status_code}, body={self.body!r})"


class RequestPipeline:
    """
    Issues REST calls against the notification service on behalf of the
    current session.

    The session is read through ``session_provider`` on every request so a
    user switch takes effect without rebuilding the pipeline.
    """

    def __init__(
        self,
        base_url: str,
        session_provider: Callable[[], Session],
        sinks: ViewSinks,
        token_builder: TokenBuilder = build_token,
        verify_tls: bool = True,
        request_timeout: int = 30,
        metrics: MetricsCollector | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._session_provider = session_provider
        self._sinks = sinks
        self._token_builder = token_builder
        self._verify_tls = verify_tls
        self._request_timeout = request_timeout
        self._metrics = metrics
        self._client: httpx.AsyncClient | None = None

    async def open(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._request_timeout),
                verify=self._verify_tls,
            )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> RequestPipeline:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def headers(self, authenticate: bool = True) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if authenticate:
            headers["Authorization"] = self._token_builder(self._session_provider())
        return headers

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        authenticate: bool = True,
    ) -> Any:
        """
        Send a request and return the decoded success body.

        Success bodies are JSON when decodable, otherwise the raw text (the
        service answers deletes with a plain confirmation string).
        Raises ``PipelineError`` after logging and toasting it.
        """
        assert self._client, "pipeline is not open"
        url = f"{self._base_url}{path}"
        content = json.dumps(body) if body is not None else None

        if self._metrics:
            self._metrics.inc("requests_total")

        try:
            resp = await self._client.request(
                method,
                url,
                content=content,
                headers=self.headers(authenticate),
            )
        except httpx.TransportError as exc:
            error = PipelineError(ErrorCause.NETWORK, body=str(exc) or None)
            self._report(error, method, path)
            raise error from exc

        if not resp.is_success:
            error = _classify(resp)
            self._report(error, method, path)
            raise error

        return _decode_success(resp)

    def _report(self, error: PipelineError, method: str, path: str) -> None:
        if self._metrics:
            self._metrics.inc("request_errors_total")
        log.error(
            "pipeline.request_failed",
            method=method,
            path=path,
            cause=error.cause.value,
            status=error.status_code,
            body=error.body,
        )
        self._sinks.log_error(error)
        self._sinks.notify(f"Error: {error.message}", True)


def _classify(resp: httpx.Response) -> PipelineError:
    cause = ErrorCause.HTTP_5XX if resp.status_code >= 500 else ErrorCause.HTTP_4XX
    text = resp.text
    if not text:
        return PipelineError(cause, resp.status_code, None)
    try:
        return PipelineError(cause, resp.status_code, json.loads(text))
    except json.JSONDecodeError:
        if "json" in resp.headers.get("content-type", ""):
            return PipelineError(ErrorCause.PARSE, resp.status_code, text)
        return PipelineError(cause, resp.status_code, text)


def _decode_success(resp: httpx.Response) -> Any:
    text = resp.text
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text
