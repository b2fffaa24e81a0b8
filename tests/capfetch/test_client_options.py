"""Tests for fetch option validation."""

import pytest

from capfetch.client.options import (
    assert_valid_options,
    assert_valid_secret_options,
    validate_url,
)
from capfetch.primitives.errors import DisallowedOption, InvalidMethod, InvalidParameter


class TestAssertValidOptions:
    """Test public request options."""

    @pytest.mark.parametrize("method", ["GET", "POST"])
    def test_allowed_methods(self, method):
        """GET and POST are accepted."""
        assert_valid_options({"method": method, "body": "x"})

    def test_method_required(self):
        """A method must be given."""
        with pytest.raises(InvalidParameter) as exc:
            assert_valid_options({"body": "x"})
        assert exc.value.message == "Method is required"

    @pytest.mark.parametrize("method", ["PUT", "DELETE", "get"])
    def test_other_methods(self, method):
        """Other methods are refused."""
        with pytest.raises(InvalidMethod):
            assert_valid_options({"method": method})

    @pytest.mark.parametrize("option", ["mode", "cache", "credentials", "redirect", "referrer_policy"])
    def test_browser_options_refused(self, option):
        """Browser fetch options may not be set."""
        with pytest.raises(DisallowedOption) as exc:
            assert_valid_options({"method": "GET", option: "anything"})
        assert exc.value.message == f"Option: {option} is not allowed"


class TestAssertValidSecretOptions:
    """Test secret options."""

    def test_body_refused(self):
        """Secret options cannot carry a body."""
        with pytest.raises(DisallowedOption):
            assert_valid_secret_options({"body": "secret"})

    def test_headers_allowed(self):
        """Secret headers and cookies are fine."""
        assert_valid_secret_options({"headers": {"Authorization": "Bearer x"}, "cookie_str": "a=b"})


class TestValidateUrl:
    """Test URL argument checks."""

    def test_valid(self):
        """Absolute URLs pass."""
        validate_url("https://api.example.com/data", "fetch")

    @pytest.mark.parametrize(
        "url,message",
        [
            (None, "url passed to fetch must not be null or undefined."),
            (42, "url passed to fetch must be a string."),
            ("  ", "url passed to fetch must be a non-empty string."),
            ("not a url", "Invalid URL format passed to fetch."),
        ],
    )
    def test_invalid(self, url, message):
        """Bad URLs name the receiving function."""
        with pytest.raises(InvalidParameter) as exc:
            validate_url(url, "fetch")
        assert exc.value.message == message
