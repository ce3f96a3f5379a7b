"""Utility functions for the fusion pipeline."""

from .logging import get_logger
from .config import load_config, FusionConfig, ExtrinsicsConfig

__all__ = ["get_logger", "load_config", "FusionConfig", "ExtrinsicsConfig"]
