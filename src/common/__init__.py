"""Shared configuration helpers."""

from .config import CompositorConfig, load_config

__all__ = ["CompositorConfig", "load_config"]
