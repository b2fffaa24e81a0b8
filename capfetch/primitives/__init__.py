"""capfetch primitives: errors, canonical JSON, signing and URL matching."""

from capfetch.primitives.errors import (
    ApplicationError,
    CapfetchError,
    DisallowedOption,
    InvalidMethod,
    InvalidParameter,
    NetworkError,
    ProtocolFailure,
)
from capfetch.primitives.integrity import canonical_bytes, canonical_json
from capfetch.primitives.signing import KeyIdentity, recover_identity
from capfetch.primitives.url_patterns import (
    PatternKind,
    canonicalize_url,
    is_url_allowed,
    matches_pattern,
    parse_url,
    validate_pattern,
)

__all__ = [
    # Errors
    "CapfetchError",
    "InvalidParameter",
    "DisallowedOption",
    "InvalidMethod",
    "ApplicationError",
    "NetworkError",
    "ProtocolFailure",
    # Integrity
    "canonical_json",
    "canonical_bytes",
    # Signing
    "KeyIdentity",
    "recover_identity",
    # URL patterns
    "PatternKind",
    "parse_url",
    "canonicalize_url",
    "matches_pattern",
    "is_url_allowed",
    "validate_pattern",
]
