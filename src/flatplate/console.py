"""Rich console output helpers."""

from rich.console import Console

console = Console()


def ok(msg: str):
    """Print success message."""
    console.print(f"  [green]✓[/green] {msg}")


def warn(msg: str):
    """Print warning message."""
    console.print(f"  [yellow]![/yellow] {msg}")


def fail(msg: str):
    """Print failure message."""
    console.print(f"  [red]✗[/red] {msg}")


def header(msg: str):
    """Print bold header."""
    console.print(f"\n[bold]{msg}[/bold]")


def report_status(solver):
    """Print the final run status of a solver."""
    m = solver.metrics
    header("Supersonic flat plate")
    if m.status == "CONVERGED":
        ok(f"Converged after {m.iterations} iterations (max|drho|={m.final_residual:.3e})")
    elif m.status == "MAX_ITER_REACHED":
        warn(f"Hit iteration cap of {m.iterations} (max|drho|={m.final_residual:.3e}), unconverged")
    else:
        fail(f"Aborted after {m.iterations} iterations")
