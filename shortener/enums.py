"""Shared enums for the URL shortener service.

This module defines the status enums used for health reporting and metric labels.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "RequestStatus"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class RequestStatus(StrEnum):
    """Request status values for metrics and logging."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    RETRY_EXHAUSTED = "retry_exhausted"
    ERROR = "error"
