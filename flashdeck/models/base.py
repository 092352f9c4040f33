"""Base model for all flashdeck Pydantic models.

This module provides a base model class that enforces consistent serialization
behavior across all flashdeck models.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict


class FlashdeckBaseModel(BaseModel):
    """Base model class for all flashdeck Pydantic models.

    This class enforces consistent serialization behavior:
    - by_alias=True: Use field aliases for serialization
    - exclude_unset=True: Exclude fields that weren't explicitly set
    - mode="json": Use JSON-compatible serialization (e.g., datetime -> timestamp)
    """

    model_config = ConfigDict(
        extra="allow",
        str_strip_whitespace=True,
        use_enum_values=True,
        validate_assignment=True,
        populate_by_name=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert model to dictionary with consistent serialization parameters.

        Returns:
            Dictionary representation using JSON-compatible serialization
        """
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")
