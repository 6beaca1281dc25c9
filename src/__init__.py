# src/__init__.py — v1
"""Stow vision gateway: encrypted provider keys and image categorization."""

from stowvision.version import __version__

__all__ = ["__version__"]
