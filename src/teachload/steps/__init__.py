"""Pipeline steps, each discovered by `StepRegistry`."""
