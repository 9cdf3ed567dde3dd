"""Utility modules for buddykit."""

from .process import run_foreground

__all__ = ["run_foreground"]
