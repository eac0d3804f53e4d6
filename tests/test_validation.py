"""Unit tests for the validation engine.

Tests cover:
- Required text fields
- Required drop downs with and without the "other" option
- The companion "other" text field exemption
- Sliders never failing
- ValidationResult structure and idempotence of clear + validate
"""

import pytest

from reportform.fields import DropDown, DropDownOption, Slider, TextField
from reportform.store import FormFieldStore
from reportform.types import FieldErrorKind, OTHER_CATEGORY_TEXT_FIELD_ID, OTHER_DROP_DOWN_OPTION_ID
from reportform.validation import ValidationEngine, ValidationResult, validate


def category_drop_down(value="", is_required=True):
    return DropDown(
        id="category",
        is_required=is_required,
        value=value,
        options=(
            DropDownOption("spam", "Spam"),
            DropDownOption(OTHER_DROP_DOWN_OPTION_ID, "Other"),
        ),
        other_option_id=OTHER_DROP_DOWN_OPTION_ID,
        linked_other_field_id=OTHER_CATEGORY_TEXT_FIELD_ID,
    )


def other_text_field(value=""):
    return TextField(id=OTHER_CATEGORY_TEXT_FIELD_ID, value=value, is_required=True, is_visible=False)


class TestTextFields:
    """Test required-value rules for text fields."""

    def test_required_empty_text_field(self):
        """Should return EMPTY at the index of an empty required text field."""
        fields = [Slider(id="severity"), TextField(id="link", is_required=True)]
        assert validate(fields) == {1: FieldErrorKind.EMPTY}

    def test_required_filled_text_field(self):
        """Should pass when the required text field has a value."""
        fields = [TextField(id="link", is_required=True, value="https://example.com")]
        assert validate(fields) == {}

    def test_optional_empty_text_field(self):
        """Should pass an empty optional text field."""
        assert validate([TextField(id="comments")]) == {}

    def test_linked_other_field_is_exempt(self):
        """Should not check the companion field directly, even when required."""
        fields = [category_drop_down(value="Spam"), other_text_field()]
        assert validate(fields) == {}

    def test_marked_other_field_is_exempt_without_drop_down(self):
        """Should not check the other-category field directly when nothing links to it."""
        fields = [
            TextField(id="link", is_required=True, value="x"),
            TextField(id=OTHER_CATEGORY_TEXT_FIELD_ID, is_required=True, is_other_category=True),
        ]
        assert validate(fields) == {}


class TestDropDowns:
    """Test required-value rules for drop downs."""

    def test_required_drop_down_without_selection(self):
        """Should return EMPTY at the drop down's own index."""
        fields = [TextField(id="link", value="x"), category_drop_down()]
        assert validate(fields) == {1: FieldErrorKind.EMPTY}

    def test_required_drop_down_with_regular_option(self):
        """Should pass when a regular option is selected."""
        assert validate([category_drop_down(value="Spam"), other_text_field()]) == {}

    def test_other_option_with_empty_companion(self):
        """Should place EMPTY_CATEGORY at the companion field, not the drop down."""
        fields = [category_drop_down(value="Other"), Slider(id="severity"), other_text_field()]
        assert validate(fields) == {2: FieldErrorKind.EMPTY_CATEGORY}

    def test_other_option_with_filled_companion(self):
        """Should pass when the companion field has text."""
        fields = [category_drop_down(value="Other"), other_text_field("Impersonation")]
        assert validate(fields) == {}

    def test_other_option_without_companion_in_list(self):
        """Should not report anything when the companion field is absent."""
        assert validate([category_drop_down(value="Other")]) == {}

    def test_optional_drop_down_with_other_option(self):
        """Should not require the companion when the drop down is optional."""
        fields = [category_drop_down(value="Other", is_required=False), other_text_field()]
        assert validate(fields) == {}

    def test_unknown_title_is_not_other(self):
        """Should treat a value matching no option as a regular non-empty selection."""
        fields = [category_drop_down(value="Something else"), other_text_field()]
        assert validate(fields) == {}


class TestSliders:
    """Test that sliders never fail."""

    def test_required_slider_never_fails(self):
        """Should pass a required slider at any value."""
        assert validate([Slider(id="severity", is_required=True, value=0)]) == {}


class TestValidationResult:
    """Test the ValidationResult wrapper."""

    def test_check_valid_form(self):
        """Should report a valid form with no errors."""
        result = ValidationEngine().check([TextField(id="link", value="x", is_required=True)])
        assert isinstance(result, ValidationResult)
        assert result.is_valid is True
        assert result.errors == {}
        assert result.field_ids == []

    def test_check_invalid_form(self):
        """Should order errors by index and list the failing field ids."""
        fields = [
            TextField(id="link", is_required=True),
            category_drop_down(value="Other"),
            other_text_field(),
        ]
        result = ValidationEngine().check(fields)
        assert result.is_valid is False
        assert list(result.errors) == [0, 2]
        assert result.field_ids == ["link", OTHER_CATEGORY_TEXT_FIELD_ID]

    def test_to_dict(self):
        """Should serialize errors with string indices."""
        result = ValidationEngine().check([TextField(id="link", is_required=True)])
        assert result.to_dict() == {
            "isValid": False,
            "errors": {"0": "empty"},
            "fieldIds": ["link"],
        }

    def test_validation_ignores_existing_errors(self):
        """Should compute the same mapping whether or not errors are already attached."""
        fields = [TextField(id="link", is_required=True), category_drop_down()]
        store = FormFieldStore(fields)
        first = validate(store.fields)
        store.apply_errors(first)
        assert validate(store.fields) == first

    @pytest.mark.parametrize("rounds", [1, 2, 3])
    def test_clear_then_validate_is_idempotent(self, rounds):
        """Should end with the same field list however often clear + apply runs."""
        fields = [TextField(id="link", is_required=True), category_drop_down(value="Other"), other_text_field()]
        once = FormFieldStore(fields)
        once.apply_errors(validate(once.fields))

        repeated = FormFieldStore(fields)
        for _ in range(rounds):
            repeated.clear_errors()
            repeated.apply_errors(validate(repeated.fields))

        assert repeated.fields == once.fields
