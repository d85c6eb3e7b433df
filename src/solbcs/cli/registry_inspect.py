"""Show the Solidity types a registry lowers to."""

from pathlib import Path
from textwrap import dedent

from rich.box import SIMPLE
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from solbcs.errors import SolbcsError
from solbcs.schema.serde_yaml import load_registry
from solbcs.solidity.lowering import lower_registry
from solbcs.solidity.shapes import ShapeTable


def create_shapes_table(table: ShapeTable) -> Table:
    """Create a table with one row per generated type."""
    rows = Table(show_header=True, header_style="bold", box=SIMPLE, border_style="dim")
    rows.add_column("Key", no_wrap=True, style="green")
    rows.add_column("Kind")
    rows.add_column("Solidity type", no_wrap=True)
    rows.add_column("Storage")
    rows.add_column("Depends on")

    for shape in table:
        storage = "memory" if table.need_memory(shape) else "value"
        rows.add_row(
            shape.key,
            type(shape).__name__,
            shape.code_name,
            storage,
            ", ".join(dict.fromkeys(shape.dependencies())),
        )
    return rows


def _run_inspect(args) -> int:
    console = Console()
    input_path = Path(args.input)
    if not input_path.exists():
        console.print(f"[bold red]Error:[/bold red] File '{input_path}' does not exist", soft_wrap=True)
        return 1

    try:
        table = lower_registry(load_registry(input_path))
    except SolbcsError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", soft_wrap=True)
        return 1

    console.print(create_shapes_table(table))
    console.print(f"{len(table)} types")
    return 0


def add_parser(subparsers) -> None:
    parser = subparsers.add_parser(
        "inspect",
        help="List the Solidity types generated for a registry.",
        description=dedent("""
            Lower a serde-reflection registry (YAML) and list every generated
            type with its kind, storage class and dependencies.
        """)
    )
    parser.add_argument("input", help="Path to the registry file (*.yaml)")
    parser.set_defaults(func=_run_inspect)
