"""Proof collaborator interface and claim normalization.

The proof generator is an external service: capfetch builds the claim
request, hands over the owner key and normalizes whatever claim comes back.
Its transport is up to the ProofGenerator implementation.
"""

import copy
import json
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from capfetch.primitives.errors import ProtocolFailure

DEFAULT_RESPONSE_MATCHES = [{"type": "regex", "value": "(?<data>.*)"}]


class ProofGenerator(ABC):
    """Creates a claim for a request (the external proof service)."""

    @abstractmethod
    async def create_claim(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """Return the collaborator's claim or error object for request."""


@dataclass
class ClaimData:
    provider: Optional[str]
    parameters: Optional[str]
    owner: Optional[str]
    timestamp_s: Optional[int]
    context: Optional[str]
    identifier: Optional[str]
    epoch: Optional[int]


@dataclass
class WitnessData:
    id: Optional[str]
    url: str


@dataclass
class Proof:
    """Normalized claim returned by AuthorizedClient.fetch."""

    identifier: Optional[str]
    claim_data: ClaimData
    signatures: List[str] = field(default_factory=list)
    witnesses: List[WitnessData] = field(default_factory=list)
    extracted_parameter_values: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_claim_request(
    url: str,
    options: Optional[Dict[str, Any]],
    secret_options: Optional[Dict[str, Any]],
    owner_private_key: str,
    attestor_url: str,
) -> Dict[str, Any]:
    """Assemble the claim request sent to the proof generator."""
    options = options or {}
    secret_options = secret_options or {}
    return {
        "name": "http",
        "params": {
            "method": options.get("method") or "GET",
            "url": url,
            "responseMatches": secret_options.get("response_matches")
            or copy.deepcopy(DEFAULT_RESPONSE_MATCHES),
            "responseRedactions": secret_options.get("response_redactions") or [],
            "headers": options.get("headers"),
            "body": options.get("body") or "",
            "paramValues": options.get("param_values"),
            "geoLocation": options.get("geo_location"),
        },
        "context": options.get("context"),
        "secretParams": {
            "headers": secret_options.get("headers") or {},
            "cookieStr": secret_options.get("cookie_str") or "",
            "paramValues": secret_options.get("param_values"),
        },
        "ownerPrivateKey": owner_private_key,
        "client": {"url": attestor_url},
    }


def raise_for_claim_error(response: Dict[str, Any]) -> None:
    """Turn a collaborator error object into ProtocolFailure."""
    if not isinstance(response, dict):
        raise ProtocolFailure("Failed to create claim on attestor: malformed response")
    error = response.get("error")
    if not error:
        return
    if isinstance(error, dict):
        message = error.get("message") or "unknown error"
        details = error
    else:
        message = str(error)
        details = {"message": message}
    raise ProtocolFailure(f"Failed to create claim on attestor: {message}", details=details)


def _extracted_parameters(context: Optional[str]) -> Dict[str, Any]:
    if not context:
        return {}
    try:
        parsed = json.loads(context)
    except ValueError:
        return {}
    if not isinstance(parsed, dict):
        return {}
    extracted = parsed.get("extractedParameters")
    return extracted if isinstance(extracted, dict) else {}


def transform_proof(response: Dict[str, Any], attestor_url: str) -> Proof:
    """Normalize a collaborator claim into a Proof.

    Accepts ``{"claim": {...}, "signatures": [{"claim_signature",
    "attestor_address"}, ...]}``; camelCase variants of the field names are
    accepted as well.

    Raises:
        ProtocolFailure: If the response carries no claim.
    """
    claim = response.get("claim")
    if not isinstance(claim, dict):
        raise ProtocolFailure("Proof collaborator returned no claim")

    signatures = response.get("signatures") or []
    if isinstance(signatures, dict):
        signatures = [signatures]

    claim_data = ClaimData(
        provider=claim.get("provider"),
        parameters=claim.get("parameters"),
        owner=claim.get("owner"),
        timestamp_s=claim.get("timestamp_s", claim.get("timestampS")),
        context=claim.get("context"),
        identifier=claim.get("identifier"),
        epoch=claim.get("epoch"),
    )

    return Proof(
        identifier=claim_data.identifier,
        claim_data=claim_data,
        signatures=[
            s.get("claim_signature", s.get("claimSignature")) for s in signatures
        ],
        witnesses=[
            WitnessData(
                id=s.get("attestor_address", s.get("attestorAddress")),
                url=attestor_url,
            )
            for s in signatures
        ],
        extracted_parameter_values=_extracted_parameters(claim_data.context),
    )
