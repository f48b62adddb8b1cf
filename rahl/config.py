"""RAHL configuration.

Centralised, typed configuration for the generator, the LLM client and the
HTTP service. All settings use Pydantic v2 models so they can be validated at
construction time and serialised to/from JSON or environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """Configuration for the local Ollama server used for AI analysis."""

    url: str = Field(default="http://localhost:11434")
    model: str = Field(default="qwen2.5-coder:14b")
    fallback_model: str = Field(default="llama3.1:8b")
    timeout: int = Field(default=60, ge=5, description="Per-request timeout in seconds")


class GenerationConfig(BaseModel):
    """Knobs for project generation and the background orchestrator."""

    namespace: str = Field(
        default="com.rahl",
        pattern=r"^[a-z][a-z0-9_]*(\.[a-z][a-z0-9_]*)*$",
        description="Reverse-domain prefix for generated package names",
    )
    default_app_name: str = Field(default="RAHLApp", min_length=1)
    stage_delay: float = Field(
        default=0.0, ge=0.0, description="Seconds to pause between generation stages"
    )
    use_ai: bool = Field(
        default=True, description="Ask the LLM for analysis before falling back to rules"
    )


class Config(BaseModel):
    """Global RAHL configuration.

    Instances are typically created once by the CLI or the API factory and
    then passed through the rest of the system.
    """

    output_dir: Path = Field(default=Path("./output"))
    llm: LLMConfig = Field(default_factory=LLMConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Defaults to ``<output_dir>/rahl-config.json``.

        Returns:
            The path where the file was written.
        """
        target = path or (self.output_dir / "rahl-config.json")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            RAHL_OUTPUT_DIR, RAHL_LLM_URL, RAHL_LLM_MODEL,
            RAHL_LLM_FALLBACK_MODEL, RAHL_LLM_TIMEOUT, RAHL_NAMESPACE,
            RAHL_DEFAULT_APP_NAME, RAHL_STAGE_DELAY, RAHL_USE_AI.
        """
        llm_kwargs: dict[str, Any] = {}
        if os.environ.get("RAHL_LLM_URL"):
            llm_kwargs["url"] = os.environ["RAHL_LLM_URL"]
        if os.environ.get("RAHL_LLM_MODEL"):
            llm_kwargs["model"] = os.environ["RAHL_LLM_MODEL"]
        if os.environ.get("RAHL_LLM_FALLBACK_MODEL"):
            llm_kwargs["fallback_model"] = os.environ["RAHL_LLM_FALLBACK_MODEL"]
        if os.environ.get("RAHL_LLM_TIMEOUT"):
            llm_kwargs["timeout"] = int(os.environ["RAHL_LLM_TIMEOUT"])

        gen_kwargs: dict[str, Any] = {}
        if os.environ.get("RAHL_NAMESPACE"):
            gen_kwargs["namespace"] = os.environ["RAHL_NAMESPACE"]
        if os.environ.get("RAHL_DEFAULT_APP_NAME"):
            gen_kwargs["default_app_name"] = os.environ["RAHL_DEFAULT_APP_NAME"]
        if os.environ.get("RAHL_STAGE_DELAY"):
            gen_kwargs["stage_delay"] = float(os.environ["RAHL_STAGE_DELAY"])
        if os.environ.get("RAHL_USE_AI"):
            gen_kwargs["use_ai"] = os.environ["RAHL_USE_AI"].strip().lower() in (
                "1", "true", "yes", "on",
            )

        return cls(
            output_dir=Path(os.environ.get("RAHL_OUTPUT_DIR", "./output")),
            llm=LLMConfig(**llm_kwargs),
            generation=GenerationConfig(**gen_kwargs),
        )
