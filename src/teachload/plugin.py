from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Mapping

import polars as pl

from .fixes import Fixes


@dataclass(frozen=True)
class SourcePaths:
    """Paths to all local inputs required by the pipeline."""

    source_file: Path
    outcomes_dir: Path


@dataclass(frozen=True)
class StepContext:
    """Shared context that is passed to every step."""

    paths: SourcePaths
    fixes: Fixes


@dataclass
class StepConfig:
    """Configuration that can be customized per step."""

    enabled: bool = True
    validate: bool = True


@dataclass
class StepResult:
    """Tables and metrics emitted by a step."""

    tables: Mapping[str, pl.DataFrame]
    metrics: dict[str, object] = field(default_factory=dict)


class BaseStep(ABC):
    """Step interface that every module under `steps/` implements."""

    name: ClassVar[str]
    depends_on: ClassVar[list[str]] = []
    outputs: ClassVar[list[str]] = []

    def __init__(self, config: StepConfig | None = None):
        self.config = config or StepConfig()

    @abstractmethod
    def run(
        self,
        context: StepContext,
        dependencies: dict[str, pl.DataFrame],
    ) -> StepResult:
        """Return the tables produced by this step."""

    def validate(self, result: StepResult) -> list[str]:
        """Return data-quality errors (empty if validation passes)."""

        return []
