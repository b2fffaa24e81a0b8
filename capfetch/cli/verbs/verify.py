"""capfetch verify TOKEN [--application-id ID]"""

from capfetch.cli.output import die, print_result
from capfetch.primitives.errors import CapfetchError


def register(subparsers):
    p = subparsers.add_parser("verify", help="Verify a capability token")
    p.add_argument("token", help="Token to verify")
    p.add_argument("--application-id", dest="application_id",
                   help="Require the token to belong to this application")
    p.set_defaults(handler=handle)


def handle(args):
    from capfetch.tokens.verifier import verify_token

    try:
        data = verify_token(args.token, expected_application_id=args.application_id)
    except CapfetchError as e:
        die(e.message)
    print_result(data.to_dict())
