"""
Service layer: container control and health probing.
"""

from .controller import ServiceController, DockerServiceController
from .probe import ServiceProbe, ServiceStatus

__all__ = [
    'ServiceController',
    'DockerServiceController',
    'ServiceProbe',
    'ServiceStatus',
]
