"""URL allow-list matching for capability tokens.

Patterns are plain strings, classified at match time into one of three kinds:

- REGEX: starts with ``^``, ends with ``$`` without containing ``://``, or
  uses regex-only syntax (``\\d``-style shorthands, ``[...]`` classes,
  ``{m,n}`` quantifiers, ``(?:...)`` or ``(a|b)`` groups). Literal URLs that
  happen to contain such characters are treated as regexes; authors opt into
  regex syntax by writing it.
- WILDCARD: ends with ``*``.
- EXACT: everything else.

Candidates are canonicalized (parsed and re-serialized) before any
comparison, so dot segments and escaping tricks cannot smuggle a URL past a
pattern. A candidate that does not parse is never allowed.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence
from urllib.parse import quote, unquote

import idna

from capfetch.primitives.errors import InvalidParameter

logger = logging.getLogger(__name__)

SPECIAL_SCHEMES = ("http", "https", "ws", "wss", "ftp")

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*$")
_PORT_RE = re.compile(r"^[0-9]*$")
_FORBIDDEN_HOST_CHARS = frozenset(" \"#%/:<>?@[\\]^|`{}")
_STRIPPED_WHITESPACE = "".join(chr(c) for c in range(0x21))
_WILDCARD_SUFFIX = re.compile(r"/?\*$")

_SINGLE_DOT = frozenset([".", "%2e"])
_DOUBLE_DOT = frozenset(["..", ".%2e", "%2e.", "%2e%2e"])

_PATH_SAFE = "/!$%&'()*+,;=:@[]^|"
_QUERY_SAFE = "/?!$%&()*+,;=:@[]\\^`{|}~"
_FRAGMENT_SAFE = "/?#!$%&'()*+,;=:@[]\\^{|}~"
_USERINFO_SAFE = "%!$&'()*+,;=:"

_REGEX_HINTS = (
    re.compile(r"\\[dDwWsS]"),
    re.compile(r"\[[^\]]*\]"),
    re.compile(r"\{\d+(,\d*)?\}"),
    re.compile(r"\(\?:"),
    re.compile(r"\([^)]*\|[^)]*\)"),
)


class PatternKind(Enum):
    """How an allow-list entry is interpreted."""

    EXACT = "exact"
    WILDCARD = "wildcard"
    REGEX = "regex"


@dataclass(frozen=True)
class ParsedUrl:
    """A URL split into its canonical components."""

    scheme: str
    host: str
    port: Optional[int] = None
    path: str = ""
    query: Optional[str] = None
    fragment: Optional[str] = None
    userinfo: Optional[str] = None
    opaque: bool = False

    def serialize(self) -> str:
        if self.opaque:
            url = f"{self.scheme}:{self.path}"
        else:
            authority = self.host
            if self.userinfo:
                authority = f"{self.userinfo}@{authority}"
            if self.port is not None:
                authority = f"{authority}:{self.port}"
            url = f"{self.scheme}://{authority}{self.path}"
        if self.query is not None:
            url += f"?{self.query}"
        if self.fragment is not None:
            url += f"#{self.fragment}"
        return url

    def __str__(self) -> str:
        return self.serialize()


def classify(pattern: str) -> PatternKind:
    """Classify an allow-list entry. Total and deterministic."""
    if pattern.startswith("^"):
        return PatternKind.REGEX
    if pattern.endswith("$") and "://" not in pattern:
        return PatternKind.REGEX
    if any(hint.search(pattern) for hint in _REGEX_HINTS):
        return PatternKind.REGEX
    if pattern.endswith("*"):
        return PatternKind.WILDCARD
    return PatternKind.EXACT


def _normalize_host(raw_host: str, special: bool) -> Optional[str]:
    if raw_host.startswith("["):
        # IPv6 literal, kept verbatim apart from case
        if not raw_host.endswith("]") or len(raw_host) < 3:
            return None
        inner = raw_host[1:-1]
        if not all(c in "0123456789abcdefABCDEF:." for c in inner):
            return None
        return raw_host.lower()

    host = unquote(raw_host) if special else raw_host
    if any(c in _FORBIDDEN_HOST_CHARS or ord(c) < 0x20 for c in host):
        return None
    if special and not host.isascii():
        # UTS-46 non-transitional, as WHATWG and httpx: ß and ς keep their own domains
        try:
            host = idna.encode(host, uts46=True, transitional=False).decode("ascii")
        except (idna.IDNAError, UnicodeError):
            return None
    return host.lower()


def _remove_dot_segments(path: str) -> str:
    segments = path.split("/")[1:]
    output = []
    for index, segment in enumerate(segments):
        last = index == len(segments) - 1
        lowered = segment.lower()
        if lowered in _DOUBLE_DOT:
            if output:
                output.pop()
            if last:
                output.append("")
        elif lowered in _SINGLE_DOT:
            if last:
                output.append("")
        else:
            output.append(segment)
    return "/" + "/".join(output)


def _parse_authority(authority: str, special: bool) -> Optional[tuple]:
    userinfo = None
    if "@" in authority:
        userinfo, _, authority = authority.rpartition("@")
        userinfo = quote(userinfo, safe=_USERINFO_SAFE)

    if authority.startswith("["):
        end = authority.find("]")
        if end == -1:
            return None
        raw_host, rest = authority[: end + 1], authority[end + 1:]
        if rest and not rest.startswith(":"):
            return None
        raw_port = rest[1:] if rest else ""
    else:
        raw_host, _, raw_port = authority.partition(":")

    if not _PORT_RE.match(raw_port):
        return None
    port = None
    if raw_port:
        port = int(raw_port)
        if port > 65535:
            return None

    if not raw_host:
        if special:
            return None
        host = ""
    else:
        host = _normalize_host(raw_host, special)
        if host is None:
            return None

    return userinfo, host, port


def parse_url(url: str) -> Optional[ParsedUrl]:
    """Parse url strictly into canonical components.

    Returns None when url is not an absolute URL: missing or malformed
    scheme, missing host for http(s)/ws(s)/ftp, bad port or bad host.
    Explicit ports are kept even when they equal the scheme default.
    """
    if not isinstance(url, str):
        return None
    url = url.strip(_STRIPPED_WHITESPACE)
    url = url.replace("\t", "").replace("\n", "").replace("\r", "")
    if not url:
        return None

    fragment = None
    if "#" in url:
        url, _, fragment = url.partition("#")
        fragment = quote(fragment, safe=_FRAGMENT_SAFE)
    query = None
    if "?" in url:
        url, _, query = url.partition("?")
        query = quote(query, safe=_QUERY_SAFE)

    scheme, sep, rest = url.partition(":")
    if not sep or not _SCHEME_RE.match(scheme):
        return None
    scheme = scheme.lower()
    special = scheme in SPECIAL_SCHEMES

    if special:
        rest = rest.replace("\\", "/").lstrip("/")
    elif rest.startswith("//"):
        rest = rest[2:]
    else:
        return ParsedUrl(
            scheme=scheme,
            host="",
            path=quote(rest, safe=_PATH_SAFE),
            query=query,
            fragment=fragment,
            opaque=True,
        )

    authority, slash, path = rest.partition("/")
    parts = _parse_authority(authority, special)
    if parts is None:
        return None
    userinfo, host, port = parts

    path = slash + path
    if path or special:
        path = _remove_dot_segments(path or "/")
    path = quote(path, safe=_PATH_SAFE)

    return ParsedUrl(
        scheme=scheme,
        host=host,
        port=port,
        path=path,
        query=query,
        fragment=fragment,
        userinfo=userinfo,
    )


def canonicalize_url(url: str) -> Optional[str]:
    """Parse and re-serialize url, or None if it does not parse."""
    parsed = parse_url(url)
    return parsed.serialize() if parsed else None


def _match_wildcard(candidate: ParsedUrl, canonical: str, pattern: str) -> bool:
    base = pattern[:-2] if pattern.endswith("/*") else pattern[:-1]

    parsed_base = parse_url(base)
    if parsed_base is None:
        # Unparseable base: plain prefix comparison for older allow-lists
        return canonical.startswith(base)

    if (candidate.scheme, candidate.host, candidate.port) != (
        parsed_base.scheme,
        parsed_base.host,
        parsed_base.port,
    ):
        return False

    return candidate.path.startswith(parsed_base.path)


def matches_pattern(candidate: ParsedUrl, pattern: str) -> bool:
    """Check one parsed candidate against one pattern.

    Invalid regex patterns never match and never raise.
    """
    if not isinstance(pattern, str) or not pattern:
        return False
    canonical = candidate.serialize()
    kind = classify(pattern)

    if kind is PatternKind.REGEX:
        try:
            return re.search(pattern, canonical) is not None
        except re.error as e:
            logger.debug(f"Skipping invalid regex pattern {pattern!r}: {e}")
            return False
    if kind is PatternKind.WILDCARD:
        return _match_wildcard(candidate, canonical, pattern)
    return canonical == pattern


def is_url_allowed(url: str, patterns: Sequence[str]) -> bool:
    """Check url against an allow-list.

    An empty allow-list allows everything. Otherwise the canonical form of
    url must match at least one pattern.
    """
    if not patterns:
        return True
    candidate = parse_url(url)
    if candidate is None:
        return False
    return any(matches_pattern(candidate, pattern) for pattern in patterns)


def validate_pattern(pattern: str) -> PatternKind:
    """Issuance-time validation of a single allow-list entry.

    Raises:
        InvalidParameter: If the entry is empty, an uncompilable regex, or
            (for exact and wildcard entries) not a URL.
    """
    if not isinstance(pattern, str) or pattern.strip() == "":
        raise InvalidParameter(
            "All URLs in allowedUrls must be non-empty strings", field="allowedUrls"
        )

    kind = classify(pattern)
    if kind is PatternKind.REGEX:
        try:
            re.compile(pattern)
        except re.error as e:
            raise InvalidParameter(
                f"Invalid regex pattern: {pattern}", field="allowedUrls", cause=e
            )
        return kind

    if parse_url(_WILDCARD_SUFFIX.sub("", pattern)) is None:
        raise InvalidParameter(f"Invalid URL format: {pattern}", field="allowedUrls")
    return kind
