"""Service layer for flashdeck."""

from .flash_service import FlashService, create_flash_service


__all__ = ["FlashService", "create_flash_service"]
