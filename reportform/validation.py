"""Validation engine for report form fields.

Validation is a pure function of the field list: it returns a mapping from
field index to FieldErrorKind, with at most one entry per index. An empty
mapping means the form is valid.

Rules, evaluated per field in list order:
- TextField: required and empty -> EMPTY, unless the field is the free-text
  "other" category field (marked at conversion or linked from a drop down).
  That field is only checked through its drop down.
- DropDown (required): if the selected option is the drop down's "other"
  option, an empty companion text field gets EMPTY_CATEGORY at the companion's
  index. Otherwise an empty selection gets EMPTY at the drop down's index.
- Slider: never produces an error.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Set

from typing_extensions import assert_never

from reportform.fields import DropDown, Field, Slider, TextField
from reportform.types import FieldErrorKind


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating a field list.

    Attributes:
        errors: Mapping of field index to error kind
        field_ids: Ids of the fields that failed, in index order

    Examples:
        >>> result = ValidationEngine().check([TextField(id="name", is_required=True)])
        >>> result.is_valid
        False
        >>> result.errors
        {0: <FieldErrorKind.EMPTY: 'empty'>}
    """
    errors: Dict[int, FieldErrorKind]
    field_ids: List[str]

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "isValid": self.is_valid,
            "errors": {str(index): error.value for index, error in self.errors.items()},
            "fieldIds": list(self.field_ids),
        }


def _linked_other_field_ids(fields: Sequence[Field]) -> Set[str]:
    linked = {
        field.linked_other_field_id
        for field in fields
        if isinstance(field, DropDown) and field.linked_other_field_id is not None
    }
    linked.update(
        field.id for field in fields if isinstance(field, TextField) and field.is_other_category
    )
    return linked


def _index_of(fields: Sequence[Field], field_id: str) -> Optional[int]:
    for index, field in enumerate(fields):
        if field.id == field_id:
            return index
    return None


class ValidationEngine:
    """Computes field-level errors for a report form.

    The engine holds no state; one instance can validate any number of field
    lists.

    Examples:
        >>> from reportform.fields import DropDownOption
        >>> fields = [
        ...     DropDown(
        ...         id="category",
        ...         is_required=True,
        ...         value="Other",
        ...         options=(DropDownOption("other", "Other"),),
        ...         other_option_id="other",
        ...         linked_other_field_id="other_text",
        ...     ),
        ...     TextField(id="other_text"),
        ... ]
        >>> ValidationEngine().validate(fields)
        {1: <FieldErrorKind.EMPTY_CATEGORY: 'empty_category'>}
    """

    def validate(self, fields: Sequence[Field]) -> Dict[int, FieldErrorKind]:
        """Validate a field list.

        Args:
            fields: Ordered field list

        Returns:
            Mapping of field index to error; empty if the form is valid
        """
        linked_ids = _linked_other_field_ids(fields)
        errors: Dict[int, FieldErrorKind] = {}

        for index, field in enumerate(fields):
            if isinstance(field, TextField):
                if field.id not in linked_ids and field.is_required and not field.value:
                    errors[index] = FieldErrorKind.EMPTY
            elif isinstance(field, DropDown):
                if not field.is_required:
                    continue
                if field.selects_other():
                    other_index = _index_of(fields, field.linked_other_field_id)
                    if other_index is None:
                        continue
                    other = fields[other_index]
                    if isinstance(other, TextField) and not other.value:
                        errors[other_index] = FieldErrorKind.EMPTY_CATEGORY
                elif not field.value:
                    errors[index] = FieldErrorKind.EMPTY
            elif isinstance(field, Slider):
                continue
            else:
                assert_never(field)

        return errors

    def check(self, fields: Sequence[Field]) -> ValidationResult:
        """Validate a field list and wrap the mapping in a ValidationResult."""
        errors = self.validate(fields)
        ordered = dict(sorted(errors.items()))
        return ValidationResult(
            errors=ordered,
            field_ids=[fields[index].id for index in ordered],
        )


def validate(fields: Sequence[Field]) -> Dict[int, FieldErrorKind]:
    """Module-level shortcut for ``ValidationEngine().validate(fields)``."""
    return ValidationEngine().validate(fields)


__all__ = [
    "ValidationEngine",
    "ValidationResult",
    "validate",
]
