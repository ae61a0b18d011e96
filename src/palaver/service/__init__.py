"""Chat service API client."""

from .client import DEFAULT_API_BASE, ServiceClient
from .models import DatabaseHealth, Health, ModelsStatus

__all__ = [
    "DEFAULT_API_BASE",
    "DatabaseHealth",
    "Health",
    "ModelsStatus",
    "ServiceClient",
]
