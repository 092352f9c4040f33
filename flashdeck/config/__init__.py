"""Configuration package for flashdeck."""

from .models import DEFAULT_BAUD_RATE, SUPPORTED_BAUD_RATES, UserConfigData
from .user_config import UserConfig, create_user_config


__all__ = [
    "DEFAULT_BAUD_RATE",
    "SUPPORTED_BAUD_RATES",
    "UserConfig",
    "UserConfigData",
    "create_user_config",
]
