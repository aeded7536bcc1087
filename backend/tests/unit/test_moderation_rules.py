"""
Unit tests for the moderation thresholds.
"""

from video_exchange.domain.moderation import is_sensitive, is_sensitive_frame, media_id_from_uri


class TestFrameThresholds:

    def test_clean_frame(self):
        frame = {
            "nudity": {"sexual_activity": 0.01, "sexual_display": 0.02, "erotica": 0.05},
            "weapon": {"classes": {"weapon": 0.01}},
            "gore": {"prob": 0.02},
        }
        assert is_sensitive_frame(frame) is False

    def test_threshold_itself_is_not_sensitive(self):
        assert is_sensitive_frame({"nudity": {"erotica": 0.2}}) is False

    def test_nudity_above_threshold(self):
        assert is_sensitive_frame({"nudity": {"sexual_activity": 0.06}}) is True

    def test_weapon_above_threshold(self):
        assert is_sensitive_frame({"weapon": {"classes": {"weapon": 0.5}}}) is True

    def test_probability_categories(self):
        assert is_sensitive_frame({"self-harm": {"prob": 0.11}}) is True
        assert is_sensitive_frame({"violence": {"prob": 0.3}}) is True

    def test_missing_or_malformed_scores_count_as_zero(self):
        assert is_sensitive_frame({"nudity": None, "gore": {"prob": "n/a"}}) is False


class TestVideo:

    def test_one_sensitive_frame_flags_the_video(self):
        frames = [{}, {"recreational_drug": {"prob": 0.9}}, {}]
        assert is_sensitive(frames) is True

    def test_no_frames(self):
        assert is_sensitive([]) is False


class TestMediaId:

    def test_id_from_uri(self):
        assert media_id_from_uri("https://cdn/videos/abc-123.mp4") == "abc-123"
        assert media_id_from_uri("abc-123.mp4") == "abc-123"

    def test_missing_uri(self):
        assert media_id_from_uri(None) is None
        assert media_id_from_uri("") is None
