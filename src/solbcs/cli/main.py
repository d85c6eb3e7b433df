import argparse
import logging

from solbcs.cli import registry_generate, registry_inspect


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="solbcs",
        description=(
            "Command line interface for solbcs. Generates Solidity libraries "
            "that serialize the types of a serde-reflection registry."
        ),
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase logging verbosity")
    parser.set_defaults(func=lambda args: parser.print_help())

    subparsers = parser.add_subparsers(dest="command")
    registry_generate.add_parser(subparsers)
    registry_inspect.add_parser(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    result = args.func(args)
    return result if isinstance(result, int) else 0


if __name__ == "__main__":
    raise SystemExit(main())
