from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Iterable, Mapping, Protocol
from uuid import UUID, uuid4

import httpx

from .clients.base import raise_for_status, require
from .clients.diagnostics import DiagnosticsClient
from .config import EgressSettings
from .errors import DiagnosticsError, LeaseUnavailableError, ProtocolViolationError, ServiceRequestFailedError
from .models.artifacts import ArtifactAccepted, ArtifactKind, artifact_kind_segment
from .models.common import ETag

logger = logging.getLogger(__name__)


class BlobWriter(Protocol):
    async def write(self, blob_uri: str, data: bytes) -> ETag: ...


class HttpBlobWriter:
    """Writes artifact bytes to a blob URI as a single block blob."""

    def __init__(self, client: httpx.AsyncClient | None = None, *, timeout_seconds: float = 300.0) -> None:
        self._client = client
        self._timeout_seconds = timeout_seconds

    async def write(self, blob_uri: str, data: bytes) -> ETag:
        headers = {
            "x-ms-blob-type": "BlockBlob",
            "Content-Type": "application/octet-stream",
        }
        try:
            if self._client is not None:
                response = await self._client.put(blob_uri, content=data, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                    response = await client.put(blob_uri, content=data, headers=headers)
        except httpx.TransportError as exc:
            raise ServiceRequestFailedError(0, message=f"Blob write failed: {exc}") from exc

        await raise_for_status(response)
        etag = response.headers.get("ETag")
        if not etag:
            raise ProtocolViolationError(
                "Blob write response did not set the ETag header.", status_code=response.status_code
            )
        logger.info("egress.blob.written bytes=%d", len(data))
        return ETag(etag)


@dataclass(frozen=True, slots=True)
class EgressResult:
    artifact_id: UUID
    blob_uri: str
    etag: ETag
    accepted: ArtifactAccepted


def parse_metadata(entries: Iterable[str]) -> dict[str, str]:
    """Build a metadata map from KEY=VALUE entries.

    Entries without '=' are skipped; duplicate keys keep the last value.
    """
    out: dict[str, str] = {}
    for raw in entries:
        if "=" not in raw:
            logger.warning("egress.metadata.invalid entry=%r", raw)
            continue
        key, value = raw.split("=", 1)
        key = key.strip()
        if not key:
            logger.warning("egress.metadata.invalid entry=%r", raw)
            continue
        if key in out:
            logger.warning("egress.metadata.duplicate key=%s", key)
        out[key] = value.strip()
    return out


class ArtifactEgress:
    """Uploads one artifact at a time while holding a lease.

    The lease is acquired with backoff, kept alive in a background task for
    as long as the upload runs, and released afterwards.
    """

    def __init__(
        self,
        client: DiagnosticsClient,
        settings: EgressSettings | None = None,
        *,
        blob_writer: BlobWriter | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or EgressSettings()
        self._blob_writer = blob_writer or HttpBlobWriter()

    @property
    def settings(self) -> EgressSettings:
        return self._settings

    async def upload(
        self,
        i_key: str,
        artifact_kind: ArtifactKind | str,
        data: bytes,
        metadata: Mapping[str, str] | None = None,
    ) -> EgressResult:
        require(i_key, "i_key")
        require(artifact_kind_segment(artifact_kind) if artifact_kind is not None else None, "artifact_kind")
        lease_id = await self._acquire(i_key, metadata)
        keep_alive = asyncio.create_task(self._keep_alive(i_key, lease_id))
        try:
            return await self._transfer(i_key, artifact_kind, data, keep_alive)
        finally:
            await self._stop(keep_alive)
            await self._release(i_key, lease_id)

    async def _acquire(self, i_key: str, metadata: Mapping[str, str] | None) -> UUID:
        settings = self._settings
        duration = timedelta(seconds=settings.lease_duration_seconds)
        delay = settings.acquire_backoff_seconds
        attempt = 1
        while True:
            try:
                return await self._client.acquire_lease(i_key, settings.lease_namespace, duration, metadata)
            except LeaseUnavailableError:
                if attempt >= settings.acquire_attempts:
                    logger.warning(
                        "egress.lease.exhausted namespace=%s attempts=%d", settings.lease_namespace, attempt
                    )
                    raise
            logger.info(
                "egress.lease.wait namespace=%s attempt=%d delay=%.1f", settings.lease_namespace, attempt, delay
            )
            await asyncio.sleep(delay)
            delay = min(delay * 2, settings.max_acquire_backoff_seconds)
            attempt += 1

    async def _transfer(
        self,
        i_key: str,
        artifact_kind: ArtifactKind | str,
        data: bytes,
        keep_alive: asyncio.Task[None],
    ) -> EgressResult:
        artifact_id = uuid4()
        token = await self._client.get_upload_token(i_key, artifact_kind, artifact_id)
        etag = await self._blob_writer.write(token.blob_uri, data)
        if keep_alive.done() and not keep_alive.cancelled():
            exc = keep_alive.exception()
            if exc is not None:
                raise exc
        accepted = await self._client.commit_upload(i_key, artifact_kind, artifact_id, etag)
        return EgressResult(artifact_id=artifact_id, blob_uri=token.blob_uri, etag=etag, accepted=accepted)

    async def _keep_alive(self, i_key: str, lease_id: UUID) -> None:
        while True:
            await asyncio.sleep(self._settings.renew_interval_seconds)
            await self._renew(i_key, lease_id)

    async def _renew(self, i_key: str, lease_id: UUID) -> None:
        settings = self._settings
        attempt = 0
        while True:
            try:
                await self._client.renew_lease(i_key, settings.lease_namespace, lease_id)
                return
            except ServiceRequestFailedError as exc:
                if not exc.is_transient or attempt >= settings.renew_retries:
                    logger.warning("egress.lease.renew_failed lease_id=%s status=%d", lease_id, exc.status_code)
                    raise
                attempt += 1
                logger.warning(
                    "egress.lease.renew_retry lease_id=%s status=%d attempt=%d", lease_id, exc.status_code, attempt
                )
            await asyncio.sleep(settings.retry_delay_seconds)

    @staticmethod
    async def _stop(task: asyncio.Task[None]) -> None:
        if not task.done():
            task.cancel()
        # Collects the task's outcome, including the CancelledError we just caused.
        await asyncio.gather(task, return_exceptions=True)

    async def _release(self, i_key: str, lease_id: UUID) -> None:
        # Never raises: an unreleased lease expires after its duration.
        try:
            await self._client.release_lease(i_key, self._settings.lease_namespace, lease_id)
        except DiagnosticsError as exc:
            logger.warning("egress.lease.release_failed lease_id=%s err=%s", lease_id, exc)
