#!/usr/bin/env python

"""
WorkLog - Main Entry Point

Log daily start/end work times, see them on a month calendar, and project
monthly earnings from an hourly wage.

Usage:
    python main.py <command> [args]

Requirements:
    - Python 3.10+
    - See pyproject.toml for dependencies
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from worklog.cli import main


if __name__ == "__main__":
    sys.exit(main())
