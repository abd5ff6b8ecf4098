from pathlib import Path

import click
from rich.console import Console

from .common import env, show_frame
from .errors import DataQualityError
from .pipeline import PipelineOutput, StepPipeline, check_integrity
from .writer import write_workbook

console = Console()


@click.group()
def cli():
    """Clean course-enrollment workbooks and compute teaching loads."""
    pass


@cli.command("build")
@click.option(
    "--output",
    "output_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Workbook to write; defaults to OUTPUT_FILE.",
)
def build(output_file: Path | None):
    """Run every step and write the result workbook."""
    target = output_file or env.path("OUTPUT_FILE")
    console.log(f"[blue]Building[/blue]: {target}")
    output = _run_checked()
    write_workbook(output, target)
    console.log(f"[green]✓ Wrote[/green] {target}")


@cli.command("check")
def check():
    """Run every step and the integrity check without writing anything."""
    output = _run_checked()
    for key, value in sorted(output.metrics.items()):
        console.log(f"[bold]{key}[/bold]={value}")
    for name, table in output.tables.items():
        console.log(f"[cyan]{name}[/cyan]: {table.height} rows")


def _run_checked() -> PipelineOutput:
    """Execute the pipeline; data-quality failures become a click error.

    Returns:
        PipelineOutput: Tables and metrics of a run that passed the checks.
    """
    try:
        pipeline = StepPipeline()
        order = ", ".join(step.name for step in pipeline.execution_order)
        console.log(f"[blue]Execution order:[/blue] {order}")
        output = pipeline.execute()
        check_integrity(output)
    except DataQualityError as exc:
        if exc.rows is not None:
            show_frame(type(exc).__name__, exc.rows)
        raise click.ClickException(str(exc)) from exc
    return output


if __name__ == "__main__":
    cli()
