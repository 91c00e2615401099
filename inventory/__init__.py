"""
Inventory package initialization.

This file makes the `inventory` folder a Python package. It exposes the
application factory (`create_app`) and the `init_database` function for
use by external tools
"""

from .app import create_app, init_database

__all__ = ["create_app", "init_database"]
