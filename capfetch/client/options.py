"""Validation of fetch options.

options (public request parts) keys: method, body, headers, geo_location,
param_values, context.
secret_options (redacted from proofs) keys: headers, cookie_str,
param_values, response_matches, response_redactions.
"""

from typing import Any, Dict

from capfetch.primitives.errors import DisallowedOption, InvalidMethod, InvalidParameter
from capfetch.primitives.url_patterns import parse_url

ALLOWED_METHODS = ("GET", "POST")
DISALLOWED_OPTIONS = ("mode", "cache", "credentials", "redirect", "referrer_policy")


def assert_valid_options(options: Dict[str, Any]) -> None:
    """Check request options.

    Raises:
        InvalidParameter: If no method is given.
        InvalidMethod: If the method is not GET or POST.
        DisallowedOption: If a browser fetch option is set.
    """
    method = options.get("method")
    if not method:
        raise InvalidParameter("Method is required", field="method")
    if method not in ALLOWED_METHODS:
        raise InvalidMethod(method)
    for option in DISALLOWED_OPTIONS:
        if options.get(option):
            raise DisallowedOption(option)


def assert_valid_secret_options(secret_options: Dict[str, Any]) -> None:
    """Secret options may not carry a body."""
    if secret_options.get("body"):
        raise DisallowedOption("body")


def validate_url(url: str, function_name: str) -> None:
    """Check that url is a non-empty absolute URL.

    Raises:
        InvalidParameter: Naming the function the URL was passed to.
    """
    if url is None:
        raise InvalidParameter(
            f"url passed to {function_name} must not be null or undefined.", field="url"
        )
    if not isinstance(url, str):
        raise InvalidParameter(f"url passed to {function_name} must be a string.", field="url")
    if url.strip() == "":
        raise InvalidParameter(
            f"url passed to {function_name} must be a non-empty string.", field="url"
        )
    if parse_url(url) is None:
        raise InvalidParameter(f"Invalid URL format passed to {function_name}.", field="url")
