"""Form field models for the report form session engine.

A form is an ordered list of typed fields. Every field variant shares an id,
a required flag, a visibility flag and an optional field-level error; the
variants add their own value and presentation attributes.

Field models are frozen. Updating a field always produces a new instance,
which is what lets the store hand out immutable snapshots and restore the
initial snapshot by value.

Usage:
    >>> field = TextField(id="comment", is_required=True)
    >>> field.with_value("Spam").value
    'Spam'
    >>> field.value
    ''
"""

from dataclasses import dataclass, replace
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

from reportform.types import FieldErrorKind, FieldKind


@dataclass(frozen=True)
class FieldModel:
    """Attributes shared by every field variant.

    Attributes:
        id: Stable identifier, unique within a field list
        is_required: Whether validation demands a value
        is_visible: Whether the presentation layer should show the field
        error: Field-level validation error, if any
        label: Display label
        description: Optional help text
    """
    kind: ClassVar[FieldKind]

    id: str
    is_required: bool = False
    is_visible: bool = True
    error: Optional[FieldErrorKind] = None
    label: str = ""
    description: str = ""

    def with_value(self, value: Any) -> "FieldModel":
        return replace(self, value=value)

    def with_error(self, error: Optional[FieldErrorKind]) -> "FieldModel":
        return replace(self, error=error)

    def with_visibility(self, visible: bool) -> "FieldModel":
        return replace(self, is_visible=visible)

    def _base_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "kind": self.kind.value,
            "id": self.id,
            "isRequired": self.is_required,
            "isVisible": self.is_visible,
            "label": self.label,
            "description": self.description,
        }
        if self.error is not None:
            result["error"] = self.error.value
        return result

    @staticmethod
    def _base_kwargs(data: Dict[str, Any]) -> Dict[str, Any]:
        error = data.get("error")
        return {
            "id": data["id"],
            "is_required": data.get("isRequired", False),
            "is_visible": data.get("isVisible", True),
            "error": FieldErrorKind(error) if error is not None else None,
            "label": data.get("label", ""),
            "description": data.get("description", ""),
        }


@dataclass(frozen=True)
class TextField(FieldModel):
    """Free-text field.

    Attributes:
        value: Current text
        read_only: Set when the value was injected by a prefill
        max_lines: Number of lines the presentation layer should allow
        placeholder: Hint shown while the value is empty
        is_other_category: The free-text "other" category field; only
            checked through the drop down that reveals it
    """
    kind: ClassVar[FieldKind] = FieldKind.TEXT_FIELD

    value: str = ""
    read_only: bool = False
    max_lines: int = 1
    placeholder: str = ""
    is_other_category: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result = self._base_dict()
        result.update({
            "value": self.value,
            "readOnly": self.read_only,
            "maxLines": self.max_lines,
            "placeholder": self.placeholder,
            "isOtherCategory": self.is_other_category,
        })
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TextField":
        """Create TextField from dict."""
        return cls(
            value=data.get("value", ""),
            read_only=data.get("readOnly", False),
            max_lines=data.get("maxLines", 1),
            placeholder=data.get("placeholder", ""),
            is_other_category=data.get("isOtherCategory", False),
            **cls._base_kwargs(data),
        )


@dataclass(frozen=True)
class DropDownOption:
    """A selectable drop down option."""
    id: str
    title: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DropDownOption":
        return cls(id=data["id"], title=data["title"])


@dataclass(frozen=True)
class DropDown(FieldModel):
    """Single-choice field whose value is the selected option's title.

    A drop down may control a companion free-text field: when the option
    with id ``other_option_id`` is selected, the field ``linked_other_field_id``
    is shown and must be filled in. Both are set when the schema is converted.

    Attributes:
        value: Title of the selected option, empty when nothing is selected
        options: Ordered options, ids unique
        other_option_id: Id of the option that reveals the linked field
        linked_other_field_id: Id of the companion text field
        placeholder: Hint shown while nothing is selected

    Examples:
        >>> dd = DropDown(
        ...     id="category",
        ...     options=(DropDownOption("spam", "Spam"), DropDownOption("other", "Other")),
        ...     other_option_id="other",
        ...     linked_other_field_id="other_text",
        ...     value="Other",
        ... )
        >>> dd.selects_other()
        True
    """
    kind: ClassVar[FieldKind] = FieldKind.DROP_DOWN

    value: str = ""
    options: Tuple[DropDownOption, ...] = ()
    other_option_id: Optional[str] = None
    linked_other_field_id: Optional[str] = None
    placeholder: str = ""

    def __post_init__(self):
        """Normalize options to a tuple and check option ids are unique."""
        if not isinstance(self.options, tuple):
            object.__setattr__(self, "options", tuple(self.options))
        ids = [option.id for option in self.options]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Drop down '{self.id}' has duplicate option ids: {ids}")

    def selected_option(self) -> Optional[DropDownOption]:
        """Return the first option whose title equals the current value."""
        for option in self.options:
            if option.title == self.value:
                return option
        return None

    def selects_other(self) -> bool:
        """Whether the current selection is the option revealing the linked field."""
        if self.other_option_id is None:
            return False
        selected = self.selected_option()
        return selected is not None and selected.id == self.other_option_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result = self._base_dict()
        result.update({
            "value": self.value,
            "options": [option.to_dict() for option in self.options],
            "placeholder": self.placeholder,
        })
        if self.other_option_id is not None:
            result["otherOptionId"] = self.other_option_id
        if self.linked_other_field_id is not None:
            result["linkedOtherFieldId"] = self.linked_other_field_id
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DropDown":
        """Create DropDown from dict."""
        return cls(
            value=data.get("value", ""),
            options=tuple(DropDownOption.from_dict(o) for o in data.get("options", [])),
            other_option_id=data.get("otherOptionId"),
            linked_other_field_id=data.get("linkedOtherFieldId"),
            placeholder=data.get("placeholder", ""),
            **cls._base_kwargs(data),
        )


@dataclass(frozen=True)
class Slider(FieldModel):
    """Integer range field. Sliders never fail validation."""
    kind: ClassVar[FieldKind] = FieldKind.SLIDER

    value: int = 0
    min_value: int = 0
    max_value: int = 10
    step: int = 1
    left_title: str = ""
    right_title: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result = self._base_dict()
        result.update({
            "value": self.value,
            "min": self.min_value,
            "max": self.max_value,
            "step": self.step,
            "leftTitle": self.left_title,
            "rightTitle": self.right_title,
        })
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Slider":
        """Create Slider from dict."""
        return cls(
            value=data.get("value", 0),
            min_value=data.get("min", 0),
            max_value=data.get("max", 10),
            step=data.get("step", 1),
            left_title=data.get("leftTitle", ""),
            right_title=data.get("rightTitle", ""),
            **cls._base_kwargs(data),
        )


Field = Union[TextField, DropDown, Slider]

# Ordered; position is both render order and the key of the error mapping
FormFieldList = Tuple[Field, ...]

FIELD_TYPES: Dict[FieldKind, type] = {
    FieldKind.TEXT_FIELD: TextField,
    FieldKind.DROP_DOWN: DropDown,
    FieldKind.SLIDER: Slider,
}


def field_from_dict(data: Dict[str, Any]) -> Field:
    """Create the right field variant from a dict produced by ``to_dict``."""
    return FIELD_TYPES[FieldKind(data["kind"])].from_dict(data)


__all__ = [
    "FieldModel",
    "TextField",
    "DropDownOption",
    "DropDown",
    "Slider",
    "Field",
    "FormFieldList",
    "field_from_dict",
]
