"""Durable per-question overrides of automatic formatting."""

from .manager import ConfigurationManager, OverrideStoreError, OverrideValidationError
from .models import OverrideRecord

__all__ = [
    "ConfigurationManager",
    "OverrideRecord",
    "OverrideStoreError",
    "OverrideValidationError",
]
