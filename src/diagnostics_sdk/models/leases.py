from __future__ import annotations

from datetime import timedelta
from enum import Enum

MIN_LEASE_DURATION = timedelta(seconds=15)
MAX_LEASE_DURATION = timedelta(seconds=60)


class LeaseNamespaces:
    """Well-known lease namespaces. Capacity is enforced per namespace."""

    UPLOADS = "uploads"
    AGENTS = "agents"


class LeaseAction(str, Enum):
    ACQUIRE = "acquire"
    RENEW = "renew"
    RELEASE = "release"


class LeaseHeaders:
    ACTION = "x-ms-lease-action"
    DURATION = "x-ms-lease-duration"
    LEASE_ID = "x-ms-lease-id"

