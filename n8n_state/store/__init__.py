"""
Storage layer: file I/O, single-value pointers and the advisory lock.
"""

from .filestore import FileStore
from .pointer import PointerStore
from .lock import AdvisoryLock, locked

__all__ = [
    'FileStore',
    'PointerStore',
    'AdvisoryLock',
    'locked',
]
