"""Unit tests for the session repository models and in-memory implementation.

Tests cover:
- StudyDetails / StudyForm construction from camelCase dicts
- SessionConfig serialization
- PrefillValueStream replay, delivery and unsubscription
- InMemorySessionRepository lookups and failures
"""

import pytest

from reportform.config import SessionConfig
from reportform.errors import RepositoryError
from reportform.repository import InMemorySessionRepository, PrefillValueStream, StudyDetails, StudyForm
from reportform.types import OTHER_CATEGORY_TEXT_FIELD_ID, OTHER_DROP_DOWN_OPTION_ID


class TestStudyDetails:
    """Test study models."""

    def test_from_dict(self):
        """Should read camelCase keys and the nested form."""
        study = StudyDetails.from_dict({
            "id": "study_1",
            "name": "Recommendations",
            "isActive": False,
            "supportsRecording": True,
            "form": {
                "id": "form_1",
                "name": "Report",
                "fields": [{"id": "link", "type": "text_field"}],
            },
        })
        assert study.id == "study_1"
        assert study.name == "Recommendations"
        assert study.is_active is False
        assert study.supports_recording is True
        assert study.form == StudyForm(id="form_1", name="Report", fields=({"id": "link", "type": "text_field"},))
        assert study.raw_fields == ({"id": "link", "type": "text_field"},)

    def test_from_dict_defaults(self):
        """Should default to an active study without recording or form."""
        study = StudyDetails.from_dict({"id": "study_2"})
        assert study.is_active is True
        assert study.supports_recording is False
        assert study.form is None
        assert study.raw_fields == ()

    def test_form_from_dict_without_fields(self):
        """Should build an empty form."""
        assert StudyForm.from_dict({}).fields == ()

    def test_form_fields_normalized_to_tuple(self):
        """Should store raw fields as a tuple."""
        form = StudyForm(fields=[{"id": "a", "type": "slider"}])
        assert isinstance(form.fields, tuple)


class TestSessionConfig:
    """Test session configuration serialization."""

    def test_defaults(self):
        """Should use the reserved other-category ids by default."""
        config = SessionConfig()
        assert config.other_category_field_id == OTHER_CATEGORY_TEXT_FIELD_ID
        assert config.other_drop_down_option_id == OTHER_DROP_DOWN_OPTION_ID
        assert config.prefill_read_only is True
        assert config.complete_onboarding_on_load is True

    def test_round_trip(self):
        """Should rebuild an equal config from its dict."""
        config = SessionConfig(
            other_category_field_id="why_text",
            other_drop_down_option_id="else",
            prefill_read_only=False,
            complete_onboarding_on_load=False,
        )
        assert SessionConfig.from_dict(config.to_dict()) == config

    def test_from_partial_dict(self):
        """Should keep defaults for missing keys."""
        config = SessionConfig.from_dict({"completeOnboardingOnLoad": False})
        assert config.complete_onboarding_on_load is False
        assert config.other_category_field_id == OTHER_CATEGORY_TEXT_FIELD_ID


class TestPrefillValueStream:
    """Test prefill value delivery."""

    def test_new_subscriber_gets_none_first(self):
        """Should replay None before any value was emitted."""
        stream = PrefillValueStream()
        seen = []
        stream.subscribe(seen.append)
        assert seen == [None]

    def test_new_subscriber_gets_latest(self):
        """Should replay the latest value to a new subscriber."""
        stream = PrefillValueStream()
        stream.emit("a")
        stream.emit("b")
        seen = []
        stream.subscribe(seen.append)
        assert seen == ["b"]
        assert stream.latest == "b"

    def test_resubscribe_restarts_from_latest(self):
        """Should deliver from the latest value after resubscribing."""
        stream = PrefillValueStream()
        seen = []
        unsubscribe = stream.subscribe(seen.append)
        unsubscribe()
        stream.emit("a")
        stream.subscribe(seen.append)
        stream.emit("b")
        assert seen == [None, "a", "b"]

    def test_unsubscribe_twice(self):
        """Should ignore a repeated unsubscribe."""
        stream = PrefillValueStream()
        unsubscribe = stream.subscribe(lambda value: None)
        unsubscribe()
        unsubscribe()
        assert stream.subscriber_count() == 0


class TestInMemorySessionRepository:
    """Test the in-memory repository."""

    def test_selected_study(self):
        """Should return the selected study."""
        repo = InMemorySessionRepository()
        study = StudyDetails(id="s1")
        repo.add_study(study, select=True)
        repo.add_study(StudyDetails(id="s2"))
        assert repo.get_selected_study() is study

    def test_nothing_selected(self):
        """Should return None when no study is selected."""
        repo = InMemorySessionRepository()
        repo.add_study(StudyDetails(id="s1"))
        assert repo.get_selected_study() is None

    def test_failure(self):
        """Should raise RepositoryError when configured to fail."""
        repo = InMemorySessionRepository(fail_with="offline")
        with pytest.raises(RepositoryError, match="offline"):
            repo.get_selected_study()

    def test_onboarding_flag(self):
        """Should record the last onboarding value."""
        repo = InMemorySessionRepository()
        repo.set_onboarding_completed(True)
        assert repo.onboarding_completed is True
