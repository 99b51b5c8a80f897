"""Command line interface: ``scim-filter filter`` and ``scim-filter path``."""

from __future__ import annotations

from .main import cli, main

__all__ = ["cli", "main"]
