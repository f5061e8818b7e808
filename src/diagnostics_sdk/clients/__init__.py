from .base import BaseClient
from .diagnostics import DiagnosticsClient

__all__ = [
    "BaseClient",
    "DiagnosticsClient",
]
