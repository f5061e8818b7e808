from __future__ import annotations

import json
import logging
from typing import Any, Mapping, TypeVar
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from ..config import DiagnosticsClientOptions
from ..errors import InvalidArgumentError, ProtocolViolationError, ServiceRequestFailedError
from ..models.common import ErrorResponse, ServiceErrorDetail, ServiceModel

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=ServiceModel)

JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


def require(value: str | None, name: str) -> str:
    if value is None or not str(value):
        raise InvalidArgumentError(name)
    return str(value)


def segment(value: str) -> str:
    return quote(value, safe="")


def _parse_service_error(body: bytes) -> ServiceErrorDetail | None:
    if not body:
        return None
    try:
        return ErrorResponse.model_validate_json(body).error
    except Exception:
        # Best effort only: the HTTP failure is what gets reported.
        return None


def _format_failure(status: int, reason: str | None, error: ServiceErrorDetail | None) -> str:
    lines = ["Request failed."]
    status_line = f"Status: {status}"
    if reason:
        status_line += f" ({reason})"
    lines.append(status_line)
    if error is not None and error.code and error.code.strip():
        lines.append(f"ErrorCode: {error.code}")
    if error is not None and error.message and error.message.strip():
        lines.append(f"Message: {error.message}")
    return "\n".join(lines) + "\n"


async def raise_for_status(response: httpx.Response) -> None:
    """Return for 2xx, otherwise raise `ServiceRequestFailedError` describing the response."""
    status = response.status_code
    if 200 <= status <= 299:
        return

    body = await response.aread()
    error = _parse_service_error(body)
    reason = response.reason_phrase or None
    logger.debug("diagnostics.response.failed status=%d code=%s", status, error.code if error else None)
    raise ServiceRequestFailedError(
        status,
        message=_format_failure(status, reason, error),
        reason=reason,
        error_code=error.code if error else None,
        error_message=error.message if error else None,
    )


async def read_model(response: httpx.Response, model: type[ModelT]) -> ModelT:
    body = await response.aread()
    try:
        return model.model_validate_json(body)
    except ValidationError as exc:
        raise ProtocolViolationError(
            f"The service returned a response that is not a valid {model.__name__}: {exc}",
            status_code=response.status_code,
        ) from exc


class BaseClient:
    def __init__(
        self,
        options: DiagnosticsClientOptions,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._options = options
        self._owns_client = client is None
        if client is None:
            headers = {"User-Agent": options.user_agent, **options.default_headers}
            if options.bearer_token:
                headers["Authorization"] = f"Bearer {options.bearer_token}"
            client = httpx.AsyncClient(
                timeout=httpx.Timeout(options.timeout_seconds),
                headers=headers,
                transport=transport,
            )
        self._client = client

    @property
    def raw_client(self) -> httpx.AsyncClient:
        return self._client

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "BaseClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _build_request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        body: Any | None = None,
    ) -> httpx.Request:
        req_headers = dict(JSON_HEADERS)
        if headers:
            req_headers.update(headers)
        content = None if body is None else json.dumps(body).encode("utf-8")
        url = self._options.endpoint.rstrip("/") + "/" + path.lstrip("/")
        return self._client.build_request(method, url, params=params, headers=req_headers, content=content)

    async def _send(self, request: httpx.Request) -> httpx.Response:
        logger.debug("diagnostics.request method=%s url=%s", request.method, request.url)
        try:
            response = await self._client.send(request)
        except httpx.TransportError as exc:
            raise ServiceRequestFailedError(0, message=f"Request failed: {exc}") from exc
        logger.debug(
            "diagnostics.response method=%s url=%s status=%d", request.method, request.url, response.status_code
        )
        return response

    async def _send_for_model(self, request: httpx.Request, model: type[ModelT]) -> ModelT:
        response = await self._send(request)
        await raise_for_status(response)
        return await read_model(response, model)
