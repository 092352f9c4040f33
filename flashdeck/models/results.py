"""Base result model for service-level operations."""

from datetime import datetime
from typing import Any

from pydantic import Field, model_validator

from flashdeck.core.errors import FlashdeckError
from flashdeck.core.structlog_logger import get_struct_logger
from flashdeck.models.base import FlashdeckBaseModel


logger = get_struct_logger(__name__)


class BaseResult(FlashdeckBaseModel):
    """Outcome of a session operation, as reported to the operator.

    A failed operation carries the category of the error that ended it and
    the remediation hint derived for it, so the CLI can show both without
    seeing the exception.
    """

    success: bool
    timestamp: datetime = Field(default_factory=datetime.now)
    messages: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    error_category: str | None = None
    hint: str | None = None

    @model_validator(mode="after")
    def validate_success_consistency(self) -> "BaseResult":
        if self.errors and self.success:
            logger.warning("result_success_mismatch", error_count=len(self.errors))
            self.success = False
        return self

    def add_message(self, message: str) -> None:
        self.messages.append(message)

    def add_error(self, error: str) -> None:
        self.errors.append(error)
        self.success = False

    def add_failure(self, error: FlashdeckError) -> None:
        """Record a classified error with its category and hint."""
        self.add_error(error.message)
        self.error_category = error.category.value
        self.hint = error.hint
        logger.debug(
            "result_failure_recorded", category=self.error_category, error=error.message
        )

    def get_summary(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "timestamp": self.timestamp.isoformat(),
            "errors": self.errors or None,
            "error_category": self.error_category,
            "hint": self.hint,
        }


__all__ = ["BaseResult"]
