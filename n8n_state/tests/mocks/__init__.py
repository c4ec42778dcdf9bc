"""
Mock components for testing n8n-state.

FakeServiceController stands in for the docker CLI; StepClock hands out
increasing timestamps so consecutive saves never collide.
"""

from .mock_service import FakeServiceController, healthy_transport, StepClock

__all__ = [
    'FakeServiceController',
    'healthy_transport',
    'StepClock',
]
