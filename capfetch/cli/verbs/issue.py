"""capfetch issue --application-id ID --secret-env VAR --url PATTERN [...]

The secret is read from an environment variable so it never lands in shell
history.
"""

import os

from capfetch.cli.output import die, run_async
from capfetch.primitives.errors import CapfetchError


def register(subparsers):
    p = subparsers.add_parser("issue", help="Issue a capability token")
    p.add_argument("--application-id", required=True, dest="application_id",
                   help="Application identity (0x-prefixed public key)")
    p.add_argument("--secret-env", default="CAPFETCH_APPLICATION_SECRET", dest="secret_env",
                   help="Environment variable holding the application secret "
                        "(default: CAPFETCH_APPLICATION_SECRET)")
    p.add_argument("--url", action="append", required=True, dest="urls",
                   help="Allowed URL pattern (repeatable)")
    p.add_argument("--expires-at", type=int, dest="expires_at",
                   help="Expiry as Unix seconds (default: one hour from now)")
    p.add_argument("--check-registration", action="store_true", dest="check_registration",
                   help="Refuse applications unknown to the application backend")
    p.set_defaults(handler=handle)


def handle(args):
    from capfetch.runtime.applications import ApplicationDirectory
    from capfetch.tokens.issuer import TokenIssuer
    from capfetch.tokens.models import SignatureConfig

    secret = os.environ.get(args.secret_env)
    if not secret:
        die(f"environment variable {args.secret_env} is not set")

    config = SignatureConfig(
        application_id=args.application_id,
        application_secret=secret,
        allowed_urls=args.urls,
        expires_at=args.expires_at,
    )
    directory = ApplicationDirectory() if args.check_registration else None

    try:
        token = run_async(TokenIssuer(directory=directory).issue(config))
    except CapfetchError as e:
        die(e.message)
    print(token)
