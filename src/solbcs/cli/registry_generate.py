"""Generate a Solidity library from a registry file."""

import sys
from pathlib import Path
from textwrap import dedent

from rich.console import Console
from rich.markup import escape

from solbcs.config import CodeGeneratorConfig
from solbcs.errors import SolbcsError
from solbcs.schema.serde_yaml import load_registry
from solbcs.solidity import CodeGenerator


def generate_library(
    input_path: str | Path,
    output_path: str | Path | None,
    module_name: str,
    solidity_version: str = '^0.8.0',
    license: str = 'UNLICENSED',
) -> None:
    registry = load_registry(Path(input_path))
    config = CodeGeneratorConfig(
        module_name=module_name,
        solidity_version=solidity_version,
        license=license,
    )
    source = CodeGenerator(config).generate(registry)

    if output_path is None:
        sys.stdout.write(source)
        return
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(source)


def _run_generate(args) -> int:
    console = Console(stderr=True)
    input_path = Path(args.input)
    if not input_path.exists():
        console.print(f"[bold red]Error:[/bold red] File '{input_path}' does not exist", soft_wrap=True)
        return 1

    module_name = args.module_name or input_path.stem
    try:
        generate_library(input_path, args.output, module_name, args.solidity_version, args.license)
    except SolbcsError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", soft_wrap=True)
        return 1
    return 0


def add_parser(subparsers) -> None:
    parser = subparsers.add_parser(
        "generate",
        help="Generate a Solidity library for a registry.",
        description=dedent("""
            Generate a Solidity library with an encode_<type>, decode_at_<type>
            and decode_<type> function for every type of a serde-reflection
            registry (YAML). Nothing is written if a type cannot be expressed
            in Solidity.
        """)
    )
    parser.add_argument("input", help="Path to the registry file (*.yaml)")
    parser.add_argument("-o", "--output", help="Output file (default: stdout)")
    parser.add_argument("--module-name", help="Name of the generated library (default: input file stem)")
    parser.add_argument("--solidity-version", default="^0.8.0", help="Version constraint of the pragma")
    parser.add_argument("--license", default="UNLICENSED", help="SPDX license identifier")
    parser.set_defaults(func=_run_generate)
