from __future__ import annotations

__all__ = [
    "__version__",
    "ArtifactEgress",
    "DiagnosticsClient",
    "DiagnosticsClientOptions",
    "DiagnosticsError",
    "EgressSettings",
    "InvalidArgumentError",
    "LeaseUnavailableError",
    "ProtocolViolationError",
    "ServiceRequestFailedError",
    "clients",
    "models",
]

__version__ = "0.1.0"

from . import clients, models  # noqa: E402
from .clients import DiagnosticsClient  # noqa: E402
from .config import DiagnosticsClientOptions, EgressSettings  # noqa: E402
from .egress import ArtifactEgress  # noqa: E402
from .errors import (  # noqa: E402
    DiagnosticsError,
    InvalidArgumentError,
    LeaseUnavailableError,
    ProtocolViolationError,
    ServiceRequestFailedError,
)
