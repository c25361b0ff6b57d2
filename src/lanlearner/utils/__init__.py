"""Utility modules for Lanlearner."""

from lanlearner.utils.config import Config, get_config
from lanlearner.utils.timeutils import now_ms, utcnow

__all__ = ["Config", "get_config", "now_ms", "utcnow"]
