"""Configuration schema: validates pipeline-config.yml."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from figqa.schemas.stage import Stage

FRAMEWORKS = ("cypress", "playwright", "selenium")


class StageSettings(BaseModel):
    """Generation parameters for a single stage."""

    creativity: float = Field(0.7, ge=0.0, le=1.0)
    max_output_length: int = Field(4096, gt=0)
    # Optional per-stage API key, to spread quota across keys.
    api_key_env: str = ""


def _default_stages() -> dict[Stage, StageSettings]:
    return {
        Stage.REQUIREMENTS: StageSettings(creativity=0.8, max_output_length=2048),
        Stage.APPLICATION: StageSettings(creativity=0.7, max_output_length=8192),
        Stage.TEST_CASES: StageSettings(),
        Stage.TEST_SCENARIOS: StageSettings(),
        Stage.AUTOMATED_TESTING: StageSettings(),
        Stage.REPORT: StageSettings(),
    }


class BlueprintLimits(BaseModel):
    max_depth: int = Field(3, ge=0)
    max_children: int = Field(20, ge=1)


class PipelineConfig(BaseModel):
    """Top-level configuration loaded from pipeline-config.yml.

    At least one of ``figma_url`` or ``design_file`` must be provided.
    """

    # Design source, at least one required
    figma_url: str = ""
    design_file: str = ""

    # Generation endpoint (OpenAI-compatible chat completions)
    model: str = "gemini-1.5-pro"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    api_key_env: str = "GEMINI_API_KEY"
    timeout_seconds: float = Field(120.0, gt=0)

    figma_token_env: str = "FIGMA_TOKEN"

    # Test automation framework the generated tests target
    framework: str = "cypress"

    blueprint: BlueprintLimits = BlueprintLimits()
    stages: dict[Stage, StageSettings] = Field(default_factory=_default_stages)

    # Output
    output_directory: str = "./output"

    @field_validator("framework")
    @classmethod
    def check_framework(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in FRAMEWORKS:
            raise ValueError(f"framework must be one of {', '.join(FRAMEWORKS)}, got {v!r}")
        return v

    @field_validator("stages", mode="after")
    @classmethod
    def fill_missing_stages(cls, v: dict[Stage, StageSettings]) -> dict[Stage, StageSettings]:
        # Partial overrides in YAML keep the defaults for unlisted stages and fields.
        merged = _default_stages()
        for stage, settings in v.items():
            merged[stage] = merged[stage].model_copy(update=settings.model_dump(exclude_unset=True))
        return merged

    @model_validator(mode="after")
    def check_has_source(self) -> "PipelineConfig":
        if not self.figma_url and not self.design_file:
            raise ValueError("At least one of 'figma_url' or 'design_file' must be provided")
        return self

    @model_validator(mode="after")
    def check_design_file_exists(self) -> "PipelineConfig":
        if self.design_file and not Path(self.design_file).is_file():
            raise ValueError(f"design_file does not exist: {self.design_file}")
        return self

    def settings_for(self, stage: Stage) -> StageSettings:
        return self.stages.get(stage) or StageSettings()
