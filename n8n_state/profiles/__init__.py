"""
Configuration profiles (dev/staging/prod and custom) with an active pointer.
"""

from .models import ProfileConfig, ProfileInfo, ProfilePreview, Violation
from .manager import ProfileManager

__all__ = [
    'ProfileConfig',
    'ProfileInfo',
    'ProfilePreview',
    'Violation',
    'ProfileManager',
]
