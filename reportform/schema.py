"""Conversion of a study's raw field schema into field models.

Studies describe their report form as a list of raw field dicts. Each raw
field is checked against a JSON Schema before it is converted, so malformed
input fails with a SchemaConversionError that names the offending field and
path instead of a KeyError deep inside the controller.

Raw field layout (camelCase, as delivered by the study service):

    {"id": "category", "type": "drop_down", "label": "Category",
     "isRequired": true, "options": [{"id": "spam", "title": "Spam"}]}

``type`` is one of ``text_field``, ``drop_down`` or ``slider``.

After conversion, ``link_other_category`` turns the reserved "other" ids into
an explicit relation on each drop down, and ``apply_prefill`` injects an
external prefill value into the first text field.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import jsonschema
from jsonschema import Draft7Validator
from jsonschema.exceptions import best_match

from reportform.config import SessionConfig
from reportform.errors import SchemaConversionError
from reportform.fields import DropDown, DropDownOption, Field, FormFieldList, Slider, TextField
from reportform.types import FieldKind

logger = logging.getLogger(__name__)

BASE_FIELD_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "type": {"enum": [kind.value for kind in FieldKind]},
        "label": {"type": "string"},
        "description": {"type": ["string", "null"]},
        "isRequired": {"type": "boolean"},
    },
    "required": ["id", "type"],
}

KIND_SCHEMAS: Dict[FieldKind, Dict[str, Any]] = {
    FieldKind.TEXT_FIELD: {
        "type": "object",
        "properties": {
            "value": {"type": "string"},
            "placeholder": {"type": ["string", "null"]},
            "maxLines": {"type": "integer", "minimum": 1},
        },
    },
    FieldKind.DROP_DOWN: {
        "type": "object",
        "properties": {
            "value": {"type": "string"},
            "placeholder": {"type": ["string", "null"]},
            "options": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "string", "minLength": 1},
                        "title": {"type": "string"},
                    },
                    "required": ["id", "title"],
                },
            },
        },
        "required": ["options"],
    },
    FieldKind.SLIDER: {
        "type": "object",
        "properties": {
            "value": {"type": "integer"},
            "min": {"type": "integer"},
            "max": {"type": "integer"},
            "step": {"type": "integer", "minimum": 1},
            "leftTitle": {"type": ["string", "null"]},
            "rightTitle": {"type": ["string", "null"]},
        },
    },
}


def _build_validator(schema: Dict[str, Any]) -> Draft7Validator:
    Draft7Validator.check_schema(schema)
    return Draft7Validator(schema)


_BASE_VALIDATOR = _build_validator(BASE_FIELD_SCHEMA)
_KIND_VALIDATORS = {kind: _build_validator(schema) for kind, schema in KIND_SCHEMAS.items()}


def _raise_first_error(index: int, validator: Draft7Validator, raw: Mapping[str, Any]) -> None:
    error: Optional[jsonschema.ValidationError] = best_match(validator.iter_errors(raw))
    if error is None:
        return
    path = ".".join(str(p) for p in error.path)
    if error.validator == "required":
        missing = error.message.split("'")[1] if "'" in error.message else ""
        path = f"{path}.{missing}" if path else missing
        raise SchemaConversionError(index, "required property is missing", path)
    raise SchemaConversionError(index, error.message, path)


def convert_field(raw: Mapping[str, Any], index: int = 0) -> Field:
    """Convert one raw field dict into a field model.

    Raises:
        SchemaConversionError: If the raw field does not match its schema
    """
    _raise_first_error(index, _BASE_VALIDATOR, raw)
    kind = FieldKind(raw["type"])
    _raise_first_error(index, _KIND_VALIDATORS[kind], raw)

    common = {
        "id": raw["id"],
        "is_required": raw.get("isRequired", False),
        "label": raw.get("label", ""),
        "description": raw.get("description") or "",
    }

    if kind == FieldKind.TEXT_FIELD:
        return TextField(
            value=raw.get("value", ""),
            max_lines=raw.get("maxLines", 1),
            placeholder=raw.get("placeholder") or "",
            **common,
        )

    if kind == FieldKind.DROP_DOWN:
        options = [DropDownOption(id=o["id"], title=o["title"]) for o in raw["options"]]
        try:
            return DropDown(
                value=raw.get("value", ""),
                options=tuple(options),
                placeholder=raw.get("placeholder") or "",
                **common,
            )
        except ValueError as exc:
            raise SchemaConversionError(index, str(exc), "options") from exc

    # Draft 7 "integer" also accepts integral floats such as 3.0
    min_value = int(raw.get("min", 0))
    max_value = int(raw.get("max", 10))
    if min_value > max_value:
        raise SchemaConversionError(index, f"min {min_value} is greater than max {max_value}", "min")
    value = int(raw.get("value", min_value))
    if not min_value <= value <= max_value:
        raise SchemaConversionError(
            index, f"value {value} is outside the range {min_value}..{max_value}", "value"
        )
    return Slider(
        value=value,
        min_value=min_value,
        max_value=max_value,
        step=int(raw.get("step", 1)),
        left_title=raw.get("leftTitle") or "",
        right_title=raw.get("rightTitle") or "",
        **common,
    )


def link_other_category(
    fields: Sequence[Field],
    other_field_id: str,
    other_option_id: str,
) -> FormFieldList:
    """Link drop downs offering the "other" option to the "other" text field.

    The text field ``other_field_id`` is marked as the other-category field,
    which exempts it from the direct required check. Every drop down with an
    option ``other_option_id`` gets ``other_option_id`` and
    ``linked_other_field_id`` set. When at least one drop down is linked, the
    text field starts visible only if a linked drop down already selects the
    other option; otherwise its visibility is left as converted.
    """
    other_index = next(
        (i for i, f in enumerate(fields) if f.id == other_field_id and isinstance(f, TextField)),
        None,
    )
    if other_index is None:
        return tuple(fields)

    linked: List[Field] = []
    for field in fields:
        if isinstance(field, DropDown) and any(o.id == other_option_id for o in field.options):
            field = replace(field, other_option_id=other_option_id, linked_other_field_id=other_field_id)
        linked.append(field)

    other = replace(linked[other_index], is_other_category=True)
    controllers = [
        f for f in linked
        if isinstance(f, DropDown) and f.linked_other_field_id == other_field_id
    ]
    if controllers:
        other = other.with_visibility(any(f.selects_other() for f in controllers))
    linked[other_index] = other
    return tuple(linked)


def convert_fields(
    raw_fields: Iterable[Mapping[str, Any]],
    config: Optional[SessionConfig] = None,
) -> FormFieldList:
    """Convert a study's raw field schema into a linked field list.

    Raises:
        SchemaConversionError: If a raw field is malformed or ids repeat
    """
    config = config or SessionConfig()
    fields: List[Field] = []
    seen = set()
    for index, raw in enumerate(raw_fields):
        field = convert_field(raw, index)
        if field.id in seen:
            raise SchemaConversionError(index, f"duplicate field id '{field.id}'", "id")
        seen.add(field.id)
        fields.append(field)
    return link_other_category(fields, config.other_category_field_id, config.other_drop_down_option_id)


def apply_prefill(fields: Sequence[Field], value: Optional[str], read_only: bool = True) -> FormFieldList:
    """Put ``value`` into the first text field.

    Only the first text field is eligible. Nothing changes when ``value`` is
    None or the form has no text field.
    """
    if value is None:
        return tuple(fields)
    for index, field in enumerate(fields):
        if isinstance(field, TextField):
            prefilled = list(fields)
            prefilled[index] = replace(field, value=value, read_only=read_only)
            return tuple(prefilled)
    logger.debug("Prefill value ignored: form has no text field")
    return tuple(fields)


__all__ = [
    "BASE_FIELD_SCHEMA",
    "KIND_SCHEMAS",
    "convert_field",
    "convert_fields",
    "link_other_category",
    "apply_prefill",
]
