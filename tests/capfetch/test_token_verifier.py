"""Tests for capability token verification."""

import base64

import pytest

from capfetch.primitives.errors import InvalidParameter
from capfetch.primitives.integrity import canonical_bytes, canonical_json
from capfetch.primitives.signing import KeyIdentity
from capfetch.tokens.issuer import generate_token
from capfetch.tokens.models import SignatureConfig, SignatureData, decode_payload, encode_token
from capfetch.tokens.verifier import SIGNATURE_FAILED, verify_token

URLS = ["https://api.example.com/data", "https://api.example.com/*"]


def issue(key, now, **overrides):
    values = {
        "application_id": key.identity,
        "application_secret": key.private_key,
        "allowed_urls": list(URLS),
    }
    values.update(overrides)
    return generate_token(SignatureConfig(**values), now=now)


def sign_payload(payload, key):
    """Build a token from an arbitrary payload signed by key."""
    return encode_token(canonical_json(payload), key.sign_message(canonical_bytes(payload)))


def valid_payload(key, now):
    return {
        "applicationId": key.identity,
        "allowedUrls": list(URLS),
        "expiresAt": now + 3600,
        "signatureId": "sig-1",
    }


def flip(text, index):
    replacement = "1" if text[index] == "0" else "0"
    return text[:index] + replacement + text[index + 1:]


class TestRoundTrip:
    """Issue then verify."""

    def test_round_trip(self, app_key, now):
        """A fresh token verifies to its inputs."""
        data = verify_token(issue(app_key, now), now=now)
        assert isinstance(data, SignatureData)
        assert data.application_id == app_key.identity
        assert data.allowed_urls == tuple(URLS)
        assert data.expires_at == now + 3600

    def test_expected_application(self, app_key, now):
        """The expected application may differ in case only."""
        token = issue(app_key, now)
        assert verify_token(token, now=now, expected_application_id=app_key.identity.upper())

    def test_other_application_rejected(self, app_key, now):
        """A token for another application is rejected."""
        other = KeyIdentity.generate()
        with pytest.raises(InvalidParameter) as exc:
            verify_token(issue(app_key, now), now=now, expected_application_id=other.identity)
        assert exc.value.message == (
            f"Signature applicationId ({app_key.identity}) does not match "
            f"expected ({other.identity})"
        )

    def test_url_safe_unpadded_payload(self, app_key, now):
        """URL-safe base64 without padding is accepted."""
        payload = valid_payload(app_key, now)
        signature = app_key.sign_message(canonical_bytes(payload))
        encoded = base64.urlsafe_b64encode(canonical_json(payload).encode()).decode().rstrip("=")
        data = verify_token(f"{encoded}.{signature}", now=now)
        assert data.signature_id == "sig-1"


class TestExpiry:
    """Test the expiry boundary."""

    def test_expires_at_boundary(self, app_key, now):
        """expiresAt itself is already expired."""
        token = issue(app_key, now, expires_at=now + 100)
        with pytest.raises(InvalidParameter) as exc:
            verify_token(token, now=now + 100)
        assert exc.value.message == "Signature has expired"

    def test_one_second_before(self, app_key, now):
        """One second before expiresAt is still valid."""
        token = issue(app_key, now, expires_at=now + 100)
        assert verify_token(token, now=now + 99)

    def test_expiry_checked_before_signature(self, app_key, now):
        """An expired forged token reports expiry."""
        payload = valid_payload(app_key, now)
        payload["expiresAt"] = now - 1
        token = sign_payload(payload, KeyIdentity.generate())
        with pytest.raises(InvalidParameter) as exc:
            verify_token(token, now=now)
        assert exc.value.message == "Signature has expired"


class TestTamperDetection:
    """Forged and altered tokens fail with the same error."""

    @pytest.mark.parametrize("index", [2, 20, 66, 100, 129, 131])
    def test_flipped_signature_character(self, app_key, now, index):
        """Changing any part of the signature fails verification."""
        encoded, signature = issue(app_key, now).split(".")
        with pytest.raises(InvalidParameter) as exc:
            verify_token(f"{encoded}.{flip(signature, index)}", now=now)
        assert exc.value.message == SIGNATURE_FAILED

    def test_resigned_with_other_key(self, app_key, now):
        """A payload signed by another key fails like an identity mismatch."""
        token = sign_payload(valid_payload(app_key, now), KeyIdentity.generate())
        with pytest.raises(InvalidParameter) as exc:
            verify_token(token, now=now)
        assert exc.value.message == SIGNATURE_FAILED

    def test_widened_allow_list(self, app_key, now):
        """Editing the payload invalidates the signature."""
        encoded, signature = issue(app_key, now).split(".")
        payload = decode_payload(encoded)
        payload["allowedUrls"] = ["https://evil.com/*"]
        forged = base64.b64encode(canonical_json(payload).encode()).decode()
        with pytest.raises(InvalidParameter) as exc:
            verify_token(f"{forged}.{signature}", now=now)
        assert exc.value.message == SIGNATURE_FAILED

    def test_truncated_signature(self, app_key, now):
        """Short signatures fail verification."""
        encoded, signature = issue(app_key, now).split(".")
        with pytest.raises(InvalidParameter) as exc:
            verify_token(f"{encoded}.{signature[:-2]}", now=now)
        assert exc.value.message == SIGNATURE_FAILED


class TestFormat:
    """Test token format and payload structure."""

    @pytest.mark.parametrize("token", ["", None])
    def test_empty(self, token):
        """Tokens must be non-empty strings."""
        with pytest.raises(InvalidParameter) as exc:
            verify_token(token)
        assert exc.value.message == "signature must be a non-empty string"

    @pytest.mark.parametrize("token", ["no-separator", "a.b.c"])
    def test_wrong_part_count(self, token):
        """Tokens have exactly two parts."""
        with pytest.raises(InvalidParameter) as exc:
            verify_token(token)
        assert exc.value.message == "Invalid signature format"

    def test_payload_not_base64(self):
        """The first part must be base64."""
        with pytest.raises(InvalidParameter) as exc:
            verify_token("!!!.0xabcd")
        assert exc.value.message == "Invalid signature payload"

    def test_payload_not_object(self):
        """The decoded payload must be a JSON object."""
        encoded = base64.b64encode(b"[1, 2]").decode()
        with pytest.raises(InvalidParameter) as exc:
            verify_token(f"{encoded}.0xabcd")
        assert exc.value.message == "Invalid signature payload"

    @pytest.mark.parametrize("field", ["applicationId", "allowedUrls", "expiresAt", "signatureId"])
    def test_missing_field(self, app_key, now, field):
        """Every payload field is required."""
        payload = valid_payload(app_key, now)
        del payload[field]
        with pytest.raises(InvalidParameter) as exc:
            verify_token(sign_payload(payload, app_key), now=now)
        assert exc.value.message == "Invalid signature payload structure"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("allowedUrls", []),
            ("allowedUrls", "https://api.example.com/*"),
            ("allowedUrls", [1, 2]),
            ("expiresAt", "1700003600"),
            ("expiresAt", True),
            ("signatureId", 7),
        ],
    )
    def test_bad_field_types(self, app_key, now, field, value):
        """Fields must have the expected types."""
        payload = valid_payload(app_key, now)
        payload[field] = value
        with pytest.raises(InvalidParameter) as exc:
            verify_token(sign_payload(payload, app_key), now=now)
        assert exc.value.message == "Invalid signature payload structure"
