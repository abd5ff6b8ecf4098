from __future__ import annotations

from importlib import import_module
from pathlib import Path
from typing import Type

from .plugin import BaseStep


class StepRegistry:
    """Discover step subclasses by scanning the `steps` package."""

    def __init__(
        self, package_root: Path | None = None, package_name: str | None = None
    ):
        self.package_root = package_root or Path(__file__).parent
        self.steps_dir = self.package_root / "steps"
        self.package_name = package_name or __name__.rpartition(".")[0]

    def discover(self) -> dict[str, Type[BaseStep]]:
        steps: dict[str, Type[BaseStep]] = {}

        for module_path in sorted(self.steps_dir.glob("*.py")):
            if module_path.name.startswith("_"):
                continue

            module = import_module(f"{self.package_name}.steps.{module_path.stem}")
            for attr in vars(module).values():
                if (
                    isinstance(attr, type)
                    and issubclass(attr, BaseStep)
                    and attr is not BaseStep
                    and attr.__module__ == module.__name__
                ):
                    if attr.name in steps:
                        raise RuntimeError(f"Duplicate step name: {attr.name}")
                    steps[attr.name] = attr

        return steps
