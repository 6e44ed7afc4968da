"""
Request Model Tests
===================

RequestKey identity contract and ImageRequest validation.
"""

import pytest
from pydantic import ValidationError

from crossfade_image.config import Settings
from crossfade_image.errors import ConfigurationError
from crossfade_image.models.request import ImageRequest, RequestKey


class TestRequestKey:
    """Identity is (url, scale); headers are carried but ignored."""

    def test_equal_keys_hash_equal(self):
        a = RequestKey("https://x/a.png", 1.0)
        b = RequestKey("https://x/a.png", 1.0)
        assert a == b
        assert hash(a) == hash(b)

    def test_headers_do_not_participate_in_identity(self):
        a = RequestKey("https://x/a.png", 1.0, headers={"Authorization": "one"})
        b = RequestKey("https://x/a.png", 1.0, headers={"Authorization": "two"})
        assert a == b
        assert len({a, b}) == 1

    def test_scale_participates_in_identity(self):
        assert RequestKey("https://x/a.png", 1.0) != RequestKey("https://x/a.png", 2.0)

    def test_int_scale_normalized(self):
        assert RequestKey("https://x/a.png", 2) == RequestKey("https://x/a.png", 2.0)

    @pytest.mark.parametrize("url", ["", "   ", None])
    def test_empty_url_is_configuration_error(self, url):
        with pytest.raises(ConfigurationError) as exc_info:
            RequestKey(url, 1.5)
        assert exc_info.value.scale == 1.5

    def test_headers_are_read_only(self):
        key = RequestKey("https://x/a.png", headers={"A": "1"})
        with pytest.raises(TypeError):
            key.headers["B"] = "2"

    def test_headers_keep_order(self):
        key = RequestKey("https://x/a.png", headers={"B": "2", "A": "1"})
        assert list(key.headers) == ["B", "A"]

    def test_from_request(self):
        request = ImageRequest(url="https://x/a.png", scale=2.0, headers={"A": "1"})
        key = RequestKey.from_request(request)
        assert key.identity == ("https://x/a.png", 2.0)
        assert dict(key.headers) == {"A": "1"}


class TestImageRequest:
    """Pydantic validation of the configuration surface."""

    def test_defaults_match_original_widget(self):
        request = ImageRequest(url="https://x/a.png")
        assert request.scale == 1.0
        assert request.fade_out_duration == 0.3
        assert request.fade_out_curve == "ease_out"
        assert request.fade_in_duration == 0.7
        assert request.fade_in_curve == "ease_in"
        assert request.has_placeholder_view is False
        assert request.has_error_view is False
        assert request.headers is None

    def test_empty_url_accepted_by_model(self):
        # Rejected later, when the key is built.
        assert ImageRequest(url="").url == ""

    def test_negative_duration_rejected(self):
        with pytest.raises(ValidationError):
            ImageRequest(url="https://x/a.png", fade_in_duration=-1)

    def test_unknown_curve_rejected(self):
        with pytest.raises(ValidationError):
            ImageRequest(url="https://x/a.png", fade_in_curve="bouncy")

    def test_from_settings_uses_fade_defaults(self):
        settings = Settings.model_validate(
            {
                "fade": {"fade_in_duration": 1.5, "fade_in_curve": "linear"},
                "http": {"default_headers": {"X-Token": "abc"}},
            }
        )
        request = ImageRequest.from_settings("https://x/a.png", settings, has_error_view=True)
        assert request.fade_in_duration == 1.5
        assert request.fade_in_curve == "linear"
        assert request.fade_out_duration == 0.3
        assert request.headers == {"X-Token": "abc"}
        assert request.has_error_view is True
