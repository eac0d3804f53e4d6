"""Form field store for the report form session engine.

The store owns the ordered field list and the initial snapshot captured when
the form was loaded. Every operation is copy-on-write: it builds a new tuple
of fields and swaps it in, so any list previously handed out stays unchanged.

Usage:
    >>> from reportform.fields import TextField
    >>> store = FormFieldStore()
    >>> store.replace([TextField(id="comment")])
    >>> _ = store.set_value("comment", "Misleading")
    >>> store.get("comment").value
    'Misleading'
    >>> _ = store.restore_snapshot()
    >>> store.get("comment").value
    ''
"""

import logging
from typing import Any, Dict, Iterable, Optional, Union

from typing_extensions import assert_never

from reportform.errors import FieldNotFoundError, FieldValueTypeError
from reportform.fields import DropDown, Field, FormFieldList, Slider, TextField
from reportform.types import FieldErrorKind

logger = logging.getLogger(__name__)

FieldKey = Union[str, int]


def _check_value_type(field: Field, value: Any) -> None:
    """Reject values whose type does not match the field kind."""
    if isinstance(field, (TextField, DropDown)):
        if not isinstance(value, str):
            raise FieldValueTypeError(field.id, field.kind, "str", value)
    elif isinstance(field, Slider):
        # bool is an int subclass but never a slider position
        if isinstance(value, bool) or not isinstance(value, int):
            raise FieldValueTypeError(field.id, field.kind, "int", value)
    else:
        assert_never(field)


class FormFieldStore:
    """Owner of the current field list and its initial snapshot.

    Attributes:
        fields: Current field list (immutable tuple)
    """

    def __init__(self, fields: Iterable[Field] = ()):
        self._fields: FormFieldList = tuple(fields)
        self._initial: FormFieldList = self._fields

    @property
    def fields(self) -> FormFieldList:
        return self._fields

    def __len__(self) -> int:
        return len(self._fields)

    def index_of(self, key: FieldKey) -> int:
        """Resolve a field id or index to an index.

        Raises:
            FieldNotFoundError: If no field matches
        """
        if isinstance(key, int) and not isinstance(key, bool):
            if 0 <= key < len(self._fields):
                return key
            raise FieldNotFoundError(key)
        for index, field in enumerate(self._fields):
            if field.id == key:
                return index
        raise FieldNotFoundError(key)

    def find_index(self, field_id: str) -> Optional[int]:
        """Like ``index_of`` for ids, but returns None when absent."""
        for index, field in enumerate(self._fields):
            if field.id == field_id:
                return index
        return None

    def get(self, key: FieldKey) -> Field:
        return self._fields[self.index_of(key)]

    def replace(self, fields: Iterable[Field]) -> None:
        """Replace the content and capture it as the initial snapshot."""
        self._fields = tuple(fields)
        self._initial = self._fields

    def set_value(self, key: FieldKey, value: Any) -> FormFieldList:
        """Replace one field's value, preserving its other attributes.

        Setting a drop down also shows or hides its linked "other" text
        field: it is visible exactly when the newly selected option is the
        drop down's other option.

        Args:
            key: Field id or index
            value: New value; ``str`` for text fields and drop downs, ``int``
                for sliders

        Returns:
            The new field list

        Raises:
            FieldNotFoundError: If no field matches ``key``
            FieldValueTypeError: If ``value`` has the wrong type for the field
        """
        index = self.index_of(key)
        field = self._fields[index]
        _check_value_type(field, value)

        new_fields = list(self._fields)
        new_field = field.with_value(value)
        new_fields[index] = new_field

        if isinstance(new_field, DropDown) and new_field.linked_other_field_id is not None:
            other_index = self.find_index(new_field.linked_other_field_id)
            if other_index is not None:
                visible = new_field.selects_other()
                new_fields[other_index] = new_fields[other_index].with_visibility(visible)
                logger.debug(
                    "Drop down %s set %s visible=%s",
                    new_field.id, new_field.linked_other_field_id, visible,
                )

        self._fields = tuple(new_fields)
        return self._fields

    def set_visibility(self, field_id: str, visible: bool) -> FormFieldList:
        """Show or hide a field.

        Raises:
            FieldNotFoundError: If no field has ``field_id``
        """
        index = self.index_of(field_id)
        new_fields = list(self._fields)
        new_fields[index] = new_fields[index].with_visibility(visible)
        self._fields = tuple(new_fields)
        return self._fields

    def clear_errors(self) -> FormFieldList:
        """Remove the error from every field."""
        self._fields = tuple(
            field if field.error is None else field.with_error(None)
            for field in self._fields
        )
        return self._fields

    def apply_errors(self, errors: Dict[int, FieldErrorKind]) -> FormFieldList:
        """Set errors by index; every other field ends up with no error.

        Raises:
            FieldNotFoundError: If an index is out of range
        """
        for index in errors:
            if not 0 <= index < len(self._fields):
                raise FieldNotFoundError(index)
        self._fields = tuple(
            field.with_error(errors.get(index)) if field.error != errors.get(index) else field
            for index, field in enumerate(self._fields)
        )
        return self._fields

    def snapshot(self) -> FormFieldList:
        """Return the field list captured at load time."""
        return self._initial

    def restore_snapshot(self) -> FormFieldList:
        """Discard every edit and error since the last load."""
        self._fields = self._initial
        return self._fields


__all__ = [
    "FormFieldStore",
]
