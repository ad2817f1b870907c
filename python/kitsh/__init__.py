"""
kitsh - command shell for the kitsune virtualization service.

Use ``kitsh`` (or ``python -m kitsh``) with ``--target host:port`` and a
command, or ``console`` for an interactive session.
"""

from __future__ import annotations

from .cli import main

__all__ = ["main"]
__version__ = "0.1.0"
