"""Pydantic schemas for request/response validation in the URL shortener.

Schema Hierarchy
=================
::
    ShortenRequest (Input)
    └─ url: str

    ShortenResponse (Output)
    └─ url: str (fully-qualified short link)

    ErrorResponse (Output)
    ├─ message: str
    └─ code: str (ErrorKind value)

    HealthResponse (Output)
    ├─ status: HealthStatus
    └─ database: HealthStatus

Key Behaviours
===============
- The submitted URL is stored as given; no validation or normalization.
- A body without a string ``url`` is rejected by FastAPI with 422.
"""

from pydantic import BaseModel, Field

from shortener.enums import HealthStatus

__all__ = ["ShortenRequest", "ShortenResponse", "ErrorResponse", "HealthResponse"]


class ShortenRequest(BaseModel):
    url: str = Field(..., description="Target URL, e.g. 'https://example.com'")


class ShortenResponse(BaseModel):
    url: str = Field(..., description="Short link, e.g. 'http://127.0.0.1:9876/abc123'")


class ErrorResponse(BaseModel):
    message: str
    code: str


class HealthResponse(BaseModel):
    status: HealthStatus
    database: HealthStatus
