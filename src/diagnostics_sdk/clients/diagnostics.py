from __future__ import annotations

import logging
from datetime import timedelta
from typing import Mapping
from uuid import UUID

import httpx

from .base import BaseClient, raise_for_status, require, segment
from ..errors import InvalidArgumentError, LeaseUnavailableError, ProtocolViolationError
from ..models.artifacts import AppProfile, ArtifactAccepted, ArtifactKind, UploadToken, artifact_kind_segment
from ..models.common import ETag
from ..models.leases import LeaseAction, LeaseHeaders

logger = logging.getLogger(__name__)


class IngestionAction:
    GET_TOKEN = "GetToken"
    COMMIT = "Commit"


def _duration_seconds(duration: timedelta | int | float) -> int:
    if isinstance(duration, timedelta):
        return int(duration.total_seconds())
    return int(duration)


class DiagnosticsClient(BaseClient):
    """Client for the diagnostic-artifact ingestion service.

    Every method is a single request. The client keeps no lease or artifact
    state between calls: lease ids and artifact ids are always passed in by
    the caller, and renewal scheduling is up to the caller as well.
    """

    async def get_app_profile(self, i_key: str) -> AppProfile:
        i_key = require(i_key, "i_key")
        request = self._build_request("GET", f"/api/apps/{segment(i_key)}/profile")
        return await self._send_for_model(request, AppProfile)

    async def get_upload_token(self, i_key: str, artifact_kind: ArtifactKind | str, artifact_id: UUID) -> UploadToken:
        """Obtain a blob URI with a write-only credential for a new artifact."""
        request = self._artifact_request(i_key, artifact_kind, artifact_id, IngestionAction.GET_TOKEN)
        response = await self._send(request)
        await raise_for_status(response)

        location = response.headers.get("Location")
        if not location:
            raise ProtocolViolationError(
                "Response did not set the Location header.", status_code=response.status_code
            )
        logger.info("diagnostics.artifact.token kind=%s artifact_id=%s", artifact_kind, artifact_id.hex)
        return UploadToken(blob_uri=location)

    async def commit_upload(
        self,
        i_key: str,
        artifact_kind: ArtifactKind | str,
        artifact_id: UUID,
        etag: ETag | str,
    ) -> ArtifactAccepted:
        """Commit the blob just written. Fails unless the blob still has `etag`."""
        if isinstance(etag, ETag):
            require(etag.value, "etag")
        else:
            etag = ETag(require(etag, "etag"))
        request = self._artifact_request(
            i_key,
            artifact_kind,
            artifact_id,
            IngestionAction.COMMIT,
            headers={"If-Match": etag.header_value()},
        )
        accepted = await self._send_for_model(request, ArtifactAccepted)
        logger.info("diagnostics.artifact.committed kind=%s artifact_id=%s", artifact_kind, artifact_id.hex)
        return accepted

    async def acquire_lease(
        self,
        i_key: str,
        lease_namespace: str,
        duration: timedelta | int | float,
        metadata: Mapping[str, str] | None = None,
    ) -> UUID:
        """Try to acquire a lease in `lease_namespace`.

        The service accepts durations between 15 and 60 seconds; the value is
        forwarded as whole seconds without local checks.

        Raises:
            LeaseUnavailableError: the namespace is at its concurrency limit.
            ProtocolViolationError: the service did not return a usable lease id.
            ServiceRequestFailedError: any other failure.
        """
        request = self._lease_request(
            i_key,
            lease_namespace,
            LeaseAction.ACQUIRE,
            headers={LeaseHeaders.DURATION: str(_duration_seconds(duration))},
            body=dict(metadata) if metadata else None,
        )
        response = await self._send(request)

        if response.status_code == httpx.codes.CREATED:
            raw_lease_id = response.headers.get(LeaseHeaders.LEASE_ID)
            if raw_lease_id is None:
                raise ProtocolViolationError(
                    "The service did not send a lease ID in the response header.",
                    status_code=response.status_code,
                )
            try:
                lease_id = UUID(raw_lease_id.strip())
            except ValueError as exc:
                raise ProtocolViolationError(
                    "The service returned a lease ID that is not a GUID.",
                    status_code=response.status_code,
                ) from exc
            logger.info("diagnostics.lease.acquired namespace=%s lease_id=%s", lease_namespace, lease_id)
            return lease_id

        if response.status_code == httpx.codes.CONFLICT:
            logger.info("diagnostics.lease.unavailable namespace=%s", lease_namespace)
            raise LeaseUnavailableError("The lease is unavailable.")

        await raise_for_status(response)
        raise ProtocolViolationError(
            f"The service returned an unexpected response: {response.status_code}",
            status_code=response.status_code,
        )

    async def renew_lease(self, i_key: str, lease_namespace: str, lease_id: UUID) -> None:
        """Renew a held lease. Must be called before the lease duration elapses.

        Raises `LeaseUnavailableError` when the lease was lost to another caller
        or has already expired.
        """
        await self._renew_or_release(i_key, lease_namespace, lease_id, LeaseAction.RENEW)

    async def release_lease(self, i_key: str, lease_namespace: str, lease_id: UUID) -> None:
        await self._renew_or_release(i_key, lease_namespace, lease_id, LeaseAction.RELEASE)

    async def _renew_or_release(
        self, i_key: str, lease_namespace: str, lease_id: UUID, action: LeaseAction
    ) -> None:
        if lease_id is None:
            raise InvalidArgumentError("lease_id")
        request = self._lease_request(
            i_key,
            lease_namespace,
            action,
            headers={LeaseHeaders.LEASE_ID: str(lease_id)},
        )
        response = await self._send(request)
        if response.status_code == httpx.codes.CONFLICT:
            logger.info(
                "diagnostics.lease.lost namespace=%s lease_id=%s action=%s", lease_namespace, lease_id, action.value
            )
            raise LeaseUnavailableError("The lease is unavailable. It was most likely lost to another caller.")
        await raise_for_status(response)
        logger.debug("diagnostics.lease.%s namespace=%s lease_id=%s", action.value, lease_namespace, lease_id)

    def _artifact_request(
        self,
        i_key: str,
        artifact_kind: ArtifactKind | str,
        artifact_id: UUID,
        action: str,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Request:
        i_key = require(i_key, "i_key")
        kind = require(artifact_kind_segment(artifact_kind) if artifact_kind is not None else None, "artifact_kind")
        if artifact_id is None:
            raise InvalidArgumentError("artifact_id")
        path = f"/api/apps/{segment(i_key)}/artifactkinds/{segment(kind)}/artifacts/{artifact_id.hex}"
        return self._build_request("POST", path, params={"action": action}, headers=headers)

    def _lease_request(
        self,
        i_key: str,
        lease_namespace: str,
        action: LeaseAction | str,
        *,
        headers: Mapping[str, str] | None = None,
        body: dict[str, str] | None = None,
    ) -> httpx.Request:
        i_key = require(i_key, "i_key")
        lease_namespace = require(lease_namespace, "lease_namespace")
        action = require(action.value if isinstance(action, LeaseAction) else action, "action")
        req_headers = {LeaseHeaders.ACTION: action}
        if headers:
            req_headers.update(headers)
        return self._build_request(
            "PUT",
            f"/api/apps/{segment(i_key)}/leases/{segment(lease_namespace)}",
            headers=req_headers,
            body=body,
        )
