from .artifacts import AppProfile, ArtifactAccepted, ArtifactKind, UploadToken
from .common import ETag, ErrorResponse, ServiceErrorDetail, ServiceModel
from .leases import (
    MAX_LEASE_DURATION,
    MIN_LEASE_DURATION,
    LeaseAction,
    LeaseHeaders,
    LeaseNamespaces,
)

__all__ = [
    "AppProfile",
    "ArtifactAccepted",
    "ArtifactKind",
    "UploadToken",
    "ETag",
    "ErrorResponse",
    "ServiceErrorDetail",
    "ServiceModel",
    "LeaseAction",
    "LeaseHeaders",
    "LeaseNamespaces",
    "MIN_LEASE_DURATION",
    "MAX_LEASE_DURATION",
]
