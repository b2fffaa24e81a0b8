"""How an AuthorizedClient signs its requests.

Decided once at construction:

- SecretAuth: backend mode, the application secret is the request owner.
- TokenAuth: frontend mode, a verified capability token scopes the URLs and
  a local ephemeral key is the request owner.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from capfetch.runtime.ephemeral_keys import EphemeralKeyManager
from capfetch.tokens.issuer import validate_application_credentials
from capfetch.tokens.models import SignatureData
from capfetch.tokens.verifier import verify_token


@dataclass(frozen=True)
class SecretAuth:
    application_secret: str = field(repr=False)

    @property
    def owner_private_key(self) -> str:
        return self.application_secret

    @classmethod
    def create(cls, application_id: str, application_secret: str) -> "SecretAuth":
        """Validate that the secret belongs to application_id."""
        validate_application_credentials(application_id, application_secret)
        return cls(application_secret=application_secret)


@dataclass(frozen=True)
class TokenAuth:
    signature_data: SignatureData
    ephemeral_key: str = field(repr=False)

    @property
    def owner_private_key(self) -> str:
        return self.ephemeral_key

    @property
    def allowed_urls(self) -> Tuple[str, ...]:
        return self.signature_data.allowed_urls

    @classmethod
    def create(
        cls,
        application_id: str,
        token: str,
        key_manager: Optional[EphemeralKeyManager] = None,
        now: Optional[int] = None,
    ) -> "TokenAuth":
        """Verify token for application_id and load the local ephemeral key.

        Raises:
            InvalidParameter: If the token does not verify or belongs to
                another application.
        """
        data = verify_token(token, now=now, expected_application_id=application_id)
        manager = key_manager if key_manager is not None else EphemeralKeyManager()
        return cls(
            signature_data=data,
            ephemeral_key=manager.get_or_create_key(data.application_id),
        )


AuthMode = Union[SecretAuth, TokenAuth]
