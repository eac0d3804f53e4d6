"""Unit tests for field models.

Tests cover:
- Serialization (to_dict) and deserialization (from_dict, field_from_dict)
- Copy-on-write helpers
- Drop down option handling
"""

from dataclasses import FrozenInstanceError

import pytest

from reportform.fields import DropDown, DropDownOption, Slider, TextField, field_from_dict
from reportform.types import FieldErrorKind, OTHER_CATEGORY_TEXT_FIELD_ID, OTHER_DROP_DOWN_OPTION_ID

CATEGORY = DropDown(
    id="category",
    is_required=True,
    is_visible=True,
    error=FieldErrorKind.EMPTY,
    label="Category",
    description="Pick the closest match",
    value="Other",
    options=(DropDownOption("spam", "Spam"), DropDownOption(OTHER_DROP_DOWN_OPTION_ID, "Other")),
    other_option_id=OTHER_DROP_DOWN_OPTION_ID,
    linked_other_field_id=OTHER_CATEGORY_TEXT_FIELD_ID,
    placeholder="Choose one",
)


class TestFieldSerialization:
    """Test to_dict / from_dict round trips."""

    @pytest.mark.parametrize(
        "field",
        [
            TextField(id="link", is_required=True, value="https://example.com", read_only=True, max_lines=3,
                      placeholder="Paste a link", label="Link"),
            TextField(id=OTHER_CATEGORY_TEXT_FIELD_ID, is_visible=False, is_other_category=True,
                      error=FieldErrorKind.EMPTY_CATEGORY),
            CATEGORY,
            DropDown(id="plain"),
            Slider(id="severity", value=4, min_value=1, max_value=5, step=1, left_title="Low", right_title="High"),
        ],
    )
    def test_field_from_dict_round_trip(self, field):
        """Should rebuild an equal field of the same variant."""
        restored = field_from_dict(field.to_dict())
        assert type(restored) is type(field)
        assert restored == field

    def test_text_field_to_dict_keys(self):
        """Should serialize with camelCase keys and the kind tag."""
        data = TextField(id="link", read_only=True).to_dict()
        assert data["kind"] == "text_field"
        assert data["readOnly"] is True
        assert data["isOtherCategory"] is False
        assert "error" not in data

    def test_drop_down_to_dict(self):
        """Should serialize options in order and the other relation."""
        data = CATEGORY.to_dict()
        assert data["options"] == [
            {"id": "spam", "title": "Spam"},
            {"id": OTHER_DROP_DOWN_OPTION_ID, "title": "Other"},
        ]
        assert data["otherOptionId"] == OTHER_DROP_DOWN_OPTION_ID
        assert data["linkedOtherFieldId"] == OTHER_CATEGORY_TEXT_FIELD_ID
        assert data["error"] == "empty"

    def test_from_dict_defaults(self):
        """Should fill in defaults for missing keys."""
        field = TextField.from_dict({"id": "comments"})
        assert field == TextField(id="comments")
        slider = Slider.from_dict({"id": "s"})
        assert (slider.value, slider.min_value, slider.max_value, slider.step) == (0, 0, 10, 1)

    def test_option_round_trip(self):
        """Should rebuild a drop down option."""
        option = DropDownOption("spam", "Spam")
        assert DropDownOption.from_dict(option.to_dict()) == option

    def test_unknown_kind(self):
        """Should reject an unknown kind tag."""
        with pytest.raises(ValueError):
            field_from_dict({"kind": "checkbox", "id": "x"})


class TestFieldHelpers:
    """Test copy-on-write helpers and drop down selection."""

    def test_with_value_returns_copy(self):
        """Should leave the original field untouched."""
        field = Slider(id="s", value=1)
        assert field.with_value(2).value == 2
        assert field.value == 1

    def test_with_error_and_visibility(self):
        """Should replace only the named attribute."""
        field = TextField(id="t", value="x")
        assert field.with_error(FieldErrorKind.EMPTY).error == FieldErrorKind.EMPTY
        hidden = field.with_visibility(False)
        assert hidden.is_visible is False
        assert hidden.value == "x"

    def test_fields_are_frozen(self):
        """Should prevent in-place modification."""
        with pytest.raises(FrozenInstanceError):
            TextField(id="t").value = "x"

    def test_options_list_normalized_to_tuple(self):
        """Should store options as a tuple."""
        dd = DropDown(id="d", options=[DropDownOption("a", "A")])
        assert dd.options == (DropDownOption("a", "A"),)

    def test_duplicate_option_ids(self):
        """Should reject duplicate option ids."""
        with pytest.raises(ValueError):
            DropDown(id="d", options=(DropDownOption("a", "A"), DropDownOption("a", "B")))

    def test_selected_option(self):
        """Should resolve the selected option by title."""
        assert CATEGORY.selected_option() == DropDownOption(OTHER_DROP_DOWN_OPTION_ID, "Other")
        assert CATEGORY.selects_other() is True
        assert CATEGORY.with_value("Spam").selects_other() is False
        assert CATEGORY.with_value("").selected_option() is None

    def test_selects_other_without_relation(self):
        """Should never report Other for a drop down without an other option id."""
        dd = DropDown(id="d", value="Other", options=(DropDownOption(OTHER_DROP_DOWN_OPTION_ID, "Other"),))
        assert dd.selects_other() is False
