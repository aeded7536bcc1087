"""
Unit tests for video metadata validation and keyword normalisation.
"""

from video_exchange.domain.video import video_metadata_errors
from video_exchange.infrastructure.services.video_service import normalize_keywords


VALID = dict(
    title="Sunset timelapse",
    description="Two hours of sunset in two minutes.",
    category="travel_adventure",
    keywords=["sunset", "timelapse"],
)


class TestMetadata:

    def test_valid_metadata(self):
        assert video_metadata_errors(**VALID) == []

    def test_every_broken_rule_is_reported(self):
        errors = video_metadata_errors(title="abc", description="short", category="nope", keywords=[])
        assert len(errors) == 4

    def test_missing_fields_are_required_on_create(self):
        errors = video_metadata_errors(None, None, None, None)
        assert len(errors) == 4

    def test_missing_fields_are_skipped_on_edit(self):
        assert video_metadata_errors(None, None, None, None, partial=True) == []

    def test_category_is_case_insensitive(self):
        assert video_metadata_errors(**{**VALID, "category": "Gaming"}) == []

    def test_keyword_length(self):
        assert video_metadata_errors(**{**VALID, "keywords": ["a"]}) != []
        assert video_metadata_errors(**{**VALID, "keywords": ["x" * 21]}) != []


def test_normalize_keywords():
    assert normalize_keywords([" Beach ", "beach", "", "Sun"]) == ["beach", "sun"]
