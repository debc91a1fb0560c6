"""
Editor configuration.

Values come from ``FLOWGRAPH_*`` environment variables, optionally seeded
from a ``.env`` file, and are validated by pydantic.
"""
import os
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from flowgraph.core.Types import EditorMode, IdPolicy

ENV_PREFIX = "FLOWGRAPH_"
_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class EditorSettings(BaseModel):
    # === Curves ===
    curvature: float = Field(default=0.5, ge=0, description="Curvature of connections without reroute points")
    reroute_curvature_start_end: float = Field(default=0.5, ge=0, description="Curvature of the first and last rerouted segment")
    reroute_curvature: float = Field(default=0.5, ge=0, description="Curvature of inner rerouted segments")
    reroute_fix_curvature: bool = Field(default=False, description="Emit one path per rerouted segment")
    reroute_width: float = Field(default=6, ge=0, description="Radius of a rendered reroute point")

    # === Editing ===
    use_uuid: bool = Field(default=False, description="Allocate UUID node ids instead of sequential integers")
    force_first_input: bool = Field(default=False, description="Dropping a connection on a node body targets input_1")
    editor_mode: EditorMode = Field(default=EditorMode.EDIT, description="edit, fixed or view")

    # === Zoom ===
    zoom_min: float = Field(default=0.5, gt=0)
    zoom_max: float = Field(default=1.6, gt=0)
    zoom_step: float = Field(default=0.1, gt=0)

    # === Server ===
    log_level: str = Field(default="INFO", description="Logging level")
    host: str = Field(default="0.0.0.0", description="API host")
    port: int = Field(default=3001, description="API port")
    cors_origins: str = Field(default="*", description="Comma separated origins allowed to call the API")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if value not in _LEVELS:
            raise ValueError(f"Unknown log level '{value}'")
        return value

    @model_validator(mode="after")
    def _zoom_bounds(self) -> "EditorSettings":
        if self.zoom_min > self.zoom_max:
            raise ValueError(f"zoom_min {self.zoom_min} exceeds zoom_max {self.zoom_max}")
        return self

    @property
    def id_policy(self) -> IdPolicy:
        return IdPolicy.RANDOM if self.use_uuid else IdPolicy.SEQUENTIAL

    @property
    def allowed_origins(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def logging_config(self) -> Dict[str, Any]:
        return {
            "level": self.log_level,
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        }

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EditorSettings":
        """Build settings from ``FLOWGRAPH_<FIELD>`` variables; unset fields keep their defaults."""
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is not None:
                values[name] = raw
        return cls(**values)


@lru_cache()
def get_settings() -> EditorSettings:
    load_dotenv()
    return EditorSettings.from_env()
