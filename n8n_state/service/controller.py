"""
ServiceController - Manages the n8n container.

Provides:
- Running check (docker ps)
- Start / stop (docker start / docker stop)
- Metadata for snapshots (version, container id, uptime)

Queries never raise on a down service or a missing docker binary; they
return False or "unknown".
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from typing import List, Optional

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


class ServiceController(ABC):
    """Narrow interface over whatever runs the service."""

    name: str = ""

    @abstractmethod
    def is_running(self, identifier: Optional[str] = None) -> bool:
        """Check if the service (or the named instance) is running."""

    @abstractmethod
    def start(self) -> bool:
        """Start the service. Returns True on success."""

    @abstractmethod
    def stop(self) -> bool:
        """Stop the service. Returns True on success."""

    def version(self) -> str:
        return UNKNOWN

    def container_id(self) -> str:
        return UNKNOWN

    def uptime(self) -> str:
        return UNKNOWN


class DockerServiceController(ServiceController):
    """
    Controls the n8n container through the docker CLI.
    """

    def __init__(self, container_name: str = "n8n", docker_bin: str = "docker",
                 command_timeout: int = 30):
        self.name = container_name
        self.docker_bin = docker_bin
        self.command_timeout = command_timeout

    def _run_command(self, args: List[str]) -> subprocess.CompletedProcess:
        """Run a docker command; a missing binary or timeout yields a failed result."""
        cmd = [self.docker_bin] + args
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.command_timeout,
                check=False,
            )
        except FileNotFoundError:
            logger.debug("docker binary not found: %s", self.docker_bin)
            return subprocess.CompletedProcess(cmd, 127, "", "docker not found")
        except subprocess.TimeoutExpired:
            logger.warning("docker command timed out: %s", " ".join(cmd))
            return subprocess.CompletedProcess(cmd, 124, "", "timed out")

    def _ps_field(self, template: str, identifier: Optional[str] = None) -> str:
        """First line of `docker ps` for the container, formatted with template."""
        result = self._run_command([
            "ps", "--filter", f"name={identifier or self.name}", "--format", template,
        ])
        if result.returncode != 0:
            return ""
        lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        return lines[0] if lines else ""

    def is_running(self, identifier: Optional[str] = None) -> bool:
        return bool(self._ps_field("{{.Names}}", identifier))

    def start(self) -> bool:
        result = self._run_command(["start", self.name])
        if result.returncode != 0:
            logger.error("docker start %s failed: %s", self.name, result.stderr.strip())
        return result.returncode == 0

    def stop(self) -> bool:
        result = self._run_command(["stop", self.name])
        if result.returncode != 0:
            logger.error("docker stop %s failed: %s", self.name, result.stderr.strip())
        return result.returncode == 0

    def version(self) -> str:
        result = self._run_command(["exec", self.name, "n8n", "--version"])
        if result.returncode != 0:
            return UNKNOWN
        return result.stdout.strip() or UNKNOWN

    def container_id(self) -> str:
        return self._ps_field("{{.ID}}") or UNKNOWN

    def uptime(self) -> str:
        return self._ps_field("{{.Status}}") or UNKNOWN
