"""
Entry point for running n8n-state as a module.

Usage:
    python -m n8n_state save
    python -m n8n_state list
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
