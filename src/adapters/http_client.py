"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers y base URL de la API.
- Traduce errores de transporte y códigos HTTP a `core.errors`.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

from typing import Any, TypeVar

import httpx
import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.config import AppSettings
from core.errors import (
    ApiError,
    BlogDeskError,
    Forbidden,
    NetworkError,
    NotFound,
    Unauthorized,
    ValidationError,
)

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)

_STATUS_ERRORS: dict[int, type[BlogDeskError]] = {
    400: ValidationError,
    401: Unauthorized,
    403: Forbidden,
    404: NotFound,
    422: ValidationError,
}


def build_async_client(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` apuntando a la API del blog."""

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    return httpx.AsyncClient(
        base_url=settings.api_base_url.rstrip("/"),
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def bearer_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _backend_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return ""
    if isinstance(payload, dict):
        for key in ("error", "message"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return ""


def raise_for_api_status(response: httpx.Response) -> None:
    """Map a non-2xx response onto the error taxonomy."""

    if response.is_success:
        return
    message = _backend_message(response)
    error_type = _STATUS_ERRORS.get(response.status_code)
    if error_type is not None:
        raise error_type(message)
    raise ApiError(message or f"HTTP {response.status_code}", status_code=response.status_code)


def unwrap_envelope(response: httpx.Response) -> Any:
    """Return the `data` member of a `{data: ...}` body."""

    try:
        payload = response.json()
    except ValueError as exc:
        raise ApiError("Response body is not JSON.", status_code=response.status_code) from exc
    if not isinstance(payload, dict) or "data" not in payload:
        raise ApiError("Response body is missing the data envelope.", status_code=response.status_code)
    return payload["data"]


async def send(
    client: httpx.AsyncClient,
    method: str,
    path: str,
    *,
    token: str | None = None,
    json: dict[str, Any] | None = None,
) -> httpx.Response:
    """Send one request; no retries. Transport failures become `NetworkError`."""

    headers = bearer_headers(token) if token else None
    try:
        response = await client.request(method, path, headers=headers, json=json)
    except httpx.TransportError as exc:
        logger.warning("http.transport_error", method=method, path=path, error=str(exc))
        raise NetworkError(str(exc)) from exc

    logger.debug("http.response", method=method, path=path, status=response.status_code)
    raise_for_api_status(response)
    return response


async def send_json(
    client: httpx.AsyncClient,
    method: str,
    path: str,
    *,
    token: str | None = None,
    json: dict[str, Any] | None = None,
) -> Any:
    response = await send(client, method, path, token=token, json=json)
    return unwrap_envelope(response)


def parse_entity(model: type[ModelT], data: Any) -> ModelT:
    """Validate one entity from an envelope's `data`, as `ApiError` on mismatch."""

    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ApiError(f"Malformed {model.__name__} in response.") from exc


def parse_entities(model: type[ModelT], data: Any) -> list[ModelT]:
    if not isinstance(data, list):
        raise ApiError(f"Expected a list of {model.__name__} in response.")
    return [parse_entity(model, item) for item in data]


def optional_entity(model: type[ModelT], response: httpx.Response) -> ModelT | None:
    """Parse the entity echoed by a mutation, or None for a bare acknowledgement."""

    try:
        data = unwrap_envelope(response)
    except ApiError:
        return None
    if not isinstance(data, dict) or not data.get("_id"):
        return None
    return parse_entity(model, data)
