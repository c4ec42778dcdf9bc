"""
ServiceProbe - is the service up, and is it answering?

Used as a precondition gate before save/restore, not as a scheduler.
Never raises on a down service.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .controller import ServiceController, UNKNOWN

logger = logging.getLogger(__name__)

HEALTHY_STATUS_CODES = (200, 302)


@dataclass
class ServiceStatus:
    """Point-in-time view of the service."""
    running: bool
    healthy: bool
    container_id: str = UNKNOWN
    uptime: str = UNKNOWN
    version: str = UNKNOWN
    endpoint: str = ""


class ServiceProbe:
    """Process check plus HTTP health check."""

    def __init__(
        self,
        controller: ServiceController,
        health_url: str = "http://localhost:5678",
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            controller: Service controller used for the process check
            health_url: Endpoint polled by is_healthy()
            timeout: Default HTTP timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.controller = controller
        self.health_url = health_url
        self.timeout = timeout
        self._transport = transport

    def is_process_running(self, identifier: Optional[str] = None) -> bool:
        try:
            return self.controller.is_running(identifier)
        except Exception as e:
            # Controllers should not raise, but a broken one must not break the gate
            logger.warning("Process check failed: %s", e)
            return False

    def is_healthy(self, endpoint: Optional[str] = None, timeout_ms: Optional[int] = None) -> bool:
        """
        GET the endpoint; healthy on 200 or 302 within the timeout.

        Redirects are not followed, n8n answers / with a redirect to the editor.
        """
        url = endpoint or self.health_url
        timeout = timeout_ms / 1000.0 if timeout_ms is not None else self.timeout
        try:
            with httpx.Client(timeout=timeout, follow_redirects=False,
                              transport=self._transport) as client:
                response = client.get(url)
        except httpx.HTTPError as e:
            logger.debug("Health probe %s failed: %s", url, e)
            return False
        logger.debug("Health probe %s -> %s", url, response.status_code)
        return response.status_code in HEALTHY_STATUS_CODES

    def status(self) -> ServiceStatus:
        running = self.is_process_running()
        status = ServiceStatus(
            running=running,
            healthy=self.is_healthy(),
            endpoint=self.health_url,
        )
        if running:
            status.container_id = self.controller.container_id()
            status.uptime = self.controller.uptime()
            status.version = self.controller.version()
        return status
