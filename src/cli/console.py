"""Rich console output helpers."""

import pandas as pd
from rich.console import Console
from rich.table import Table

console = Console()


def ok(msg: str):
    """Print success message."""
    console.print(f"  [green]✓[/green] {msg}")


def fail(msg: str):
    """Print failure message."""
    console.print(f"  [red]✗[/red] {msg}")


def dim(msg: str):
    """Print dimmed message."""
    console.print(f"  [dim]{msg}[/dim]")


def header(msg: str):
    """Print bold header."""
    console.print(f"\n[bold]{msg}[/bold]")


def print_table(df: pd.DataFrame, title: str = ""):
    """Print a DataFrame as a rich table, floats in scientific notation."""
    table = Table(title=title or None)
    for col in df.columns:
        table.add_column(str(col), justify="right")
    for row in df.itertuples(index=False):
        table.add_row(*[f"{v:.3e}" if isinstance(v, float) else str(v) for v in row])
    console.print(table)
