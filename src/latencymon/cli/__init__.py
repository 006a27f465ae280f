"""
Command-line interface for the latencymon package.
"""

from .main import main

__all__ = [
    "main",
]
