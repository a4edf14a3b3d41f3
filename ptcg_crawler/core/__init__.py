"""
Core Module
Central configuration and settings
"""

from .config import Settings, settings

__all__ = ["settings", "Settings"]
