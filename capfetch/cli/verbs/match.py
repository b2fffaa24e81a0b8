"""capfetch match URL --pattern P [--pattern P ...]"""

from capfetch.cli.output import print_result


def register(subparsers):
    p = subparsers.add_parser("match", help="Test a URL against allow-list patterns")
    p.add_argument("url", help="Candidate URL")
    p.add_argument("--pattern", action="append", default=[], dest="patterns",
                   help="Allow-list pattern (repeatable; none means allow all)")
    p.set_defaults(handler=handle)


def handle(args):
    from capfetch.primitives.url_patterns import (
        canonicalize_url,
        classify,
        is_url_allowed,
        matches_pattern,
        parse_url,
    )

    candidate = parse_url(args.url)
    print_result({
        "url": args.url,
        "canonical": canonicalize_url(args.url),
        "allowed": is_url_allowed(args.url, args.patterns),
        "patterns": [
            {
                "pattern": pattern,
                "kind": classify(pattern).value,
                "matches": candidate is not None and matches_pattern(candidate, pattern),
            }
            for pattern in args.patterns
        ],
    })
