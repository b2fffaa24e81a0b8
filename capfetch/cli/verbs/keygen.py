"""capfetch keygen"""

from capfetch.cli.output import print_result


def register(subparsers):
    p = subparsers.add_parser("keygen", help="Generate an application key pair")
    p.set_defaults(handler=handle)


def handle(args):
    from capfetch.primitives.signing import KeyIdentity

    key = KeyIdentity.generate()
    print_result({
        "applicationId": key.identity,
        "applicationSecret": key.private_key,
    })
