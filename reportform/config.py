"""Session-scoped configuration for the report form controller.

Everything a session needs to know beyond its repository is passed in
explicitly through a SessionConfig at construction time.
"""

from dataclasses import dataclass
from typing import Any, Dict

from reportform.types import OTHER_CATEGORY_TEXT_FIELD_ID, OTHER_DROP_DOWN_OPTION_ID


@dataclass(frozen=True)
class SessionConfig:
    """Configuration for one report form session.

    Attributes:
        other_category_field_id: Raw schema id of the free-text "other" field
        other_drop_down_option_id: Raw schema id of the drop down "other" option
        prefill_read_only: Whether a prefilled text field becomes read-only
        complete_onboarding_on_load: Whether a load marks onboarding completed

    Examples:
        >>> SessionConfig.from_dict({"prefillReadOnly": False}).prefill_read_only
        False
    """
    other_category_field_id: str = OTHER_CATEGORY_TEXT_FIELD_ID
    other_drop_down_option_id: str = OTHER_DROP_DOWN_OPTION_ID
    prefill_read_only: bool = True
    complete_onboarding_on_load: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "otherCategoryFieldId": self.other_category_field_id,
            "otherDropDownOptionId": self.other_drop_down_option_id,
            "prefillReadOnly": self.prefill_read_only,
            "completeOnboardingOnLoad": self.complete_onboarding_on_load,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionConfig":
        """Create SessionConfig from dict; missing keys take the defaults."""
        defaults = cls()
        return cls(
            other_category_field_id=data.get("otherCategoryFieldId", defaults.other_category_field_id),
            other_drop_down_option_id=data.get("otherDropDownOptionId", defaults.other_drop_down_option_id),
            prefill_read_only=data.get("prefillReadOnly", defaults.prefill_read_only),
            complete_onboarding_on_load=data.get(
                "completeOnboardingOnLoad", defaults.complete_onboarding_on_load
            ),
        )


__all__ = [
    "SessionConfig",
]
