from __future__ import annotations

from dataclasses import dataclass, field

import polars as pl
from environs import EnvError
from rich.console import Console

from .common import env
from .errors import DataQualityError, IntegrityError, PipelineExecutionError
from .fixes import Fixes, load_fixes
from .plugin import BaseStep, SourcePaths, StepContext
from .registry import StepRegistry
from .schema import SCHEMAS

SOURCE_ROW_METRICS = ("undergrad_source_rows", "graduate_source_rows")


@dataclass
class PipelineOutput:
    """Every table and metric produced by one pipeline run."""

    tables: dict[str, pl.DataFrame]
    metrics: dict[str, object] = field(default_factory=dict)

    def get(self, name: str) -> pl.DataFrame | None:
        return self.tables.get(name)


def resolve_source_paths(console: Console | None = None) -> SourcePaths:
    """Read the input locations from the environment."""
    paths = SourcePaths(
        source_file=env.path("SOURCE_FILE"),
        outcomes_dir=env.path("OUTCOMES_DIR"),
    )
    if console:
        for label, path in (
            ("source_file", paths.source_file),
            ("outcomes_dir", paths.outcomes_dir),
        ):
            console.log(f"[bold slate_blue1]{label}[/bold slate_blue1]={path}")
    return paths


def resolve_fixes() -> Fixes:
    """Built-in correction tables, extended by `FIXES_FILE` and `CREDIT_MIN_YEAR`."""
    try:
        fixes_file = env.path("FIXES_FILE")
    except EnvError:
        fixes_file = None
    fixes = load_fixes(fixes_file)
    try:
        fixes.credit_min_year = env.int("CREDIT_MIN_YEAR")
    except EnvError:
        pass
    return fixes


class StepPipeline:
    """Discover, sort, and execute cleaning steps."""

    def __init__(
        self,
        registry: StepRegistry | None = None,
        paths: SourcePaths | None = None,
        fixes: Fixes | None = None,
    ):
        self.console = Console()
        self.registry = registry or StepRegistry()
        self.paths = paths or resolve_source_paths(self.console)
        self.context = StepContext(paths=self.paths, fixes=fixes or resolve_fixes())
        self.steps = self._load_steps()
        self.execution_order = self._resolve_execution_order()

    def _load_steps(self) -> dict[str, BaseStep]:
        instances: dict[str, BaseStep] = {}
        for name, cls in self.registry.discover().items():
            step = cls()
            if step.config.enabled:
                instances[name] = step
        return instances

    def _map_table_producers(self) -> dict[str, str]:
        producers: dict[str, str] = {}
        for name, step in self.steps.items():
            for table_name in step.outputs:
                if table_name in producers:
                    raise PipelineExecutionError(
                        f"Table '{table_name}' already produced by {producers[table_name]}"
                    )
                producers[table_name] = name
        return producers

    def _build_dependency_graph(self) -> dict[str, set[str]]:
        graph: dict[str, set[str]] = {name: set() for name in self.steps}
        producers = self._map_table_producers()
        for name, step in self.steps.items():
            for dependency in step.depends_on:
                producer = producers.get(dependency)
                if producer is None:
                    raise PipelineExecutionError(
                        f"{name} requires '{dependency}' but no step produces it"
                    )
                graph[name].add(producer)
        return graph

    def _resolve_execution_order(self) -> list[BaseStep]:
        graph = self._build_dependency_graph()
        order: list[BaseStep] = []
        ready = sorted(name for name, deps in graph.items() if not deps)

        while ready:
            current = ready.pop(0)
            order.append(self.steps[current])
            unlocked = []
            for downstream, deps in graph.items():
                if current in deps:
                    deps.remove(current)
                    if not deps:
                        unlocked.append(downstream)
            ready.extend(sorted(unlocked))

        if len(order) != len(self.steps):
            unresolved = {name for name, deps in graph.items() if deps}
            raise PipelineExecutionError(f"Circular dependency detected: {unresolved}")

        return order

    def execute(self) -> PipelineOutput:
        collected: dict[str, pl.DataFrame] = {}
        metrics: dict[str, object] = {}

        for step in self.execution_order:
            with self.console.status(
                f"[bold green]Running[/bold green] [cyan]{step.name}[/cyan]: ",
                spinner="dots",
            ):
                inputs: dict[str, pl.DataFrame] = {}
                missing: list[str] = []
                for dependency in step.depends_on:
                    table = collected.get(dependency)
                    if table is None:
                        missing.append(dependency)
                    else:
                        inputs[dependency] = table
                if missing:
                    raise PipelineExecutionError(
                        f"{step.name} cannot resolve inputs: {missing}"
                    )

                result = step.run(context=self.context, dependencies=inputs)
                for table_name, table in result.tables.items():
                    self._validate_table_contract(table_name=table_name, table=table)
                    collected[table_name] = table
                if step.config.validate:
                    errors = step.validate(result)
                    if errors:
                        raise DataQualityError(
                            f"{step.name} failed validation: {'; '.join(errors)}"
                        )
                metrics.update(result.metrics)
                self.console.log(
                    f"[green]✓ Completed[/green] step [cyan]{step.name}[/cyan]"
                )

        return PipelineOutput(tables=collected, metrics=metrics)

    def _validate_table_contract(self, table_name: str, table: pl.DataFrame) -> None:
        schema = SCHEMAS.get(table_name)
        if not schema:
            return

        errors = schema.validate(table)
        if not errors:
            self.console.log(f"[green]Validated schema[/green] {table_name}")
            return

        sample = table.head(3).to_dicts()
        raise PipelineExecutionError(
            f"Schema validation failed for {table_name}: "
            f"{'; '.join(errors)}; sample={sample}"
        )


def check_integrity(output: PipelineOutput, tolerance: float = 1e-6) -> None:
    """Require the teaching percentages to account for every source row.

    Each source row is one course section, so its instructors' percentages
    add up to exactly 1. Any row lost on the way (an unmatched instructor, for
    example) or any section listed on several source rows breaks the equality.

    Raises:
        IntegrityError: When the totals differ.
    """
    counts = [output.metrics.get(key, 0) for key in SOURCE_ROW_METRICS]
    expected = sum(int(count) for count in counts)  # type: ignore[call-overload]
    combined = output.tables["combined"]
    actual = float(combined["percentage"].sum()) if combined.height else 0.0
    if abs(actual - expected) <= tolerance:
        return

    unmatched = output.get("unmatched_instructors")
    raise IntegrityError(
        f"Teaching percentages sum to {actual:.6f} but the source sheets hold "
        f"{expected} rows",
        rows=unmatched if unmatched is not None and unmatched.height else None,
    )
