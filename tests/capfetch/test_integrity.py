"""Tests for canonical JSON."""

from capfetch.primitives.integrity import canonical_bytes, canonical_json


class TestCanonicalJson:
    """Test canonical JSON serialization."""

    def test_sorted_keys_no_whitespace(self):
        """Keys are sorted and separators compact."""
        assert canonical_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'

    def test_key_order_independent(self):
        """Insertion order does not change the output."""
        first = canonical_json({"x": 1, "y": {"b": 2, "a": 1}})
        second = canonical_json({"y": {"a": 1, "b": 2}, "x": 1})
        assert first == second

    def test_non_ascii_escaped(self):
        """Non-ASCII characters are escaped."""
        assert canonical_json({"k": "é"}) == '{"k":"\\u00e9"}'

    def test_bytes(self):
        """canonical_bytes is the UTF-8 encoding of canonical_json."""
        data = {"allowedUrls": ["https://a/*"], "expiresAt": 5}
        assert canonical_bytes(data) == canonical_json(data).encode("utf-8")
