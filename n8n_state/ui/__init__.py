"""
UI components for n8n-state.

Provides:
- ConsoleUI: messages, headers and confirmation prompts
- ResultDisplay: tables for snapshots, profiles, history and status
"""

from .console import ConsoleUI
from .display import ResultDisplay

__all__ = [
    'ConsoleUI',
    'ResultDisplay',
]
