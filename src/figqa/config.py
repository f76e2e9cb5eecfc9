"""YAML config loader: reads pipeline-config.yml into PipelineConfig."""

from pathlib import Path

import yaml

from figqa.schemas.config import PipelineConfig


def load_config(path: str | Path) -> PipelineConfig:
    """Load and validate a pipeline config file.

    Raises ``FileNotFoundError`` if the path doesn't exist and
    ``pydantic.ValidationError`` if the YAML content is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    # A section with only commented-out keys loads as None.
    for key in ("stages", "blueprint"):
        if key in raw and raw[key] is None:
            raw[key] = {}
    if isinstance(raw.get("stages"), dict):
        raw["stages"] = {name: settings or {} for name, settings in raw["stages"].items()}

    # A relative design_file is relative to the config file, not the working directory.
    design_file = raw.get("design_file")
    if design_file and not Path(design_file).is_absolute():
        candidate = path.parent / design_file
        if candidate.is_file():
            raw["design_file"] = str(candidate)

    return PipelineConfig(**raw)
