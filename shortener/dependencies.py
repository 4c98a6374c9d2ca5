"""Dependency injection with a per-app service manager.

This module provides a centralized way to inject the persistence gateway, settings
and logger into API endpoints. Shared resources live on a ``ServiceManager``
created once per application and attached to ``app.state``.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Request

from shortener.config import Settings
from shortener.gateway import UrlGateway
from shortener.idgen import IdGenerator, generate_short_id
from shortener.service import ShortenerService

__all__ = [
    "ServiceManager",
    "RequestContext",
    "get_service_manager",
    "get_request_context",
    "get_id_generator",
    "get_shortener_service",
]


# ============================================================================
# SERVICE MANAGER
# ============================================================================


class ServiceManager:
    """Shared resources that don't need to be created per request.

    Settings are injected at construction; the gateway is connected by the
    application lifespan and disposed on shutdown.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.logger = self._setup_logger()
        self._gateway: UrlGateway | None = None

    @property
    def gateway(self) -> UrlGateway:
        if self._gateway is None:
            raise RuntimeError("ServiceManager.initialize() has not been awaited")
        return self._gateway

    async def initialize(self) -> None:
        """Connect the gateway once at startup."""
        if self._gateway is None:
            self._gateway = await UrlGateway.connect(self.settings, logger=self.logger)

    def _setup_logger(self) -> logging.Logger:
        """Setup logger once."""
        logger = logging.getLogger("urlshortener")
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(self.settings.LOG_LEVEL.upper())
        return logger

    async def cleanup(self) -> None:
        """Cleanup shared resources at shutdown."""
        if self._gateway is not None:
            await self._gateway.close()
            self._gateway = None


# ============================================================================
# REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request view over the shared resources.

    Attributes:
        service_manager: Service manager with shared resources
        request_id: Unique identifier for this request
        user_agent: Client user agent string
        client_ip: Client IP address
        start_time: Request start timestamp
    """

    service_manager: ServiceManager
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    start_time: float = field(default_factory=lambda: time.time())

    @property
    def gateway(self) -> UrlGateway:
        return self.service_manager.gateway

    @property
    def settings(self) -> Settings:
        return self.service_manager.settings

    @property
    def logger(self) -> logging.LoggerAdapter:
        """Get shared logger with request context."""
        return logging.LoggerAdapter(
            self.service_manager.logger,
            {
                "request_id": self.request_id,
                "client_ip": self.client_ip,
                "user_agent": self.user_agent,
            },
        )

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def get_service_manager(request: Request) -> ServiceManager:
    return request.app.state.service_manager


def get_request_context(
    request: Request,
    manager: ServiceManager = Depends(get_service_manager),
) -> RequestContext:
    client_ip = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())

    return RequestContext(
        service_manager=manager,
        request_id=request_id,
        user_agent=user_agent,
        client_ip=client_ip,
    )


def get_id_generator() -> IdGenerator:
    """Candidate id source; override in tests to force collisions."""
    return generate_short_id


def get_shortener_service(
    ctx: RequestContext = Depends(get_request_context),
    generate_id: IdGenerator = Depends(get_id_generator),
) -> ShortenerService:
    return ShortenerService.from_context(ctx, generate_id=generate_id)
