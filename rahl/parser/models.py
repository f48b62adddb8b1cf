"""Pydantic v2 models shared by the extractor, analyzer and synthesizer.

``FeatureSet`` is the single typed contract between feature inference and
project synthesis, whether the features came from keyword rules or from a
language model.  Field names are snake_case in Python and camelCase on the
wire (``has_login`` <-> ``hasLogin``).
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


DEFAULT_SCREENS: tuple[str, ...] = ("HomeScreen", "ProfileScreen")

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Theme(str, Enum):
    """Colour theme of the generated app."""
    LIGHT = "light"
    DARK = "dark"


class Complexity(str, Enum):
    """Estimated implementation complexity."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class UIStyle(str, Enum):
    """Widget family the generated app leans on."""
    MATERIAL = "material"
    CUPERTINO = "cupertino"
    BOTH = "both"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump using camelCase keys, as served over HTTP."""
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Feature set
# ---------------------------------------------------------------------------

def normalize_screen_name(raw: str) -> str:
    """Turn ``"settings page"`` or ``"order-history"`` into a PascalCase identifier.

    Returns an empty string when nothing usable is left.
    """
    words = re.split(r"[^A-Za-z0-9]+", raw)
    name = "".join(w[:1].upper() + w[1:] for w in words if w)
    name = name.lstrip("0123456789")
    return name[:1].upper() + name[1:]


class FeatureSet(_WireModel):
    """Detected app capabilities and the ordered screen list."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    screens: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SCREENS),
        description="Ordered, non-empty list of PascalCase screen identifiers",
    )
    has_login: bool = False
    has_database: bool = False
    has_camera: bool = False
    has_maps: bool = False
    has_payments: bool = False
    has_notifications: bool = False
    theme: Theme = Theme.LIGHT

    @field_validator("screens", mode="before")
    @classmethod
    def _normalize_screens(cls, value: Any) -> list[str]:
        if value is None:
            return list(DEFAULT_SCREENS)
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            raise ValueError("screens must be a list of names")
        seen: list[str] = []
        for item in value:
            name = normalize_screen_name(str(item))
            if name and name not in seen:
                seen.append(name)
        return seen or list(DEFAULT_SCREENS)

    @field_validator("theme", mode="before")
    @classmethod
    def _coerce_theme(cls, value: Any) -> Any:
        if isinstance(value, str):
            return Theme.DARK if value.strip().lower() == "dark" else Theme.LIGHT
        return value

    @property
    def enabled_flags(self) -> list[str]:
        """Wire names of every boolean flag that is switched on."""
        return [
            to_camel(name)
            for name in (
                "has_login",
                "has_database",
                "has_camera",
                "has_maps",
                "has_payments",
                "has_notifications",
            )
            if getattr(self, name)
        ]


# ---------------------------------------------------------------------------
# AI analysis side-record
# ---------------------------------------------------------------------------

class ColorScheme(_WireModel):
    """Hex colours (``#RRGGBB``) used to seed the generated theme."""

    primary: str = "#7C3AED"
    secondary: str = "#10B981"
    background: str = "#FFFFFF"

    @field_validator("primary", "secondary", "background", mode="before")
    @classmethod
    def _normalize_hex(cls, value: Any, info: ValidationInfo) -> str:
        match = _HEX_COLOR.match(str(value).strip()) if value is not None else None
        if not match:
            return cls.model_fields[info.field_name].default
        return "#" + match.group(1).upper()

    def dart(self, field: str = "primary") -> str:
        """Return a Dart ``Color`` literal argument, e.g. ``0xFF7C3AED``."""
        return "0xFF" + getattr(self, field).lstrip("#")


class AppAnalysis(_WireModel):
    """Narrative analysis of an app description plus its ``FeatureSet``."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    app_name: str
    package_name: str
    features: FeatureSet = Field(default_factory=FeatureSet)
    description: str = ""
    target_audience: str = "General users"
    complexity: Complexity = Complexity.LOW
    dependencies: list[str] = Field(default_factory=lambda: ["flutter", "cupertino_icons"])
    ui_style: UIStyle = UIStyle.MATERIAL
    color_scheme: ColorScheme = Field(default_factory=ColorScheme)

    # Filled in by AppAnalyzer.enhance_analysis
    estimated_development_time: str = ""
    widgets: list[str] = Field(default_factory=list)
    file_structure: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    source: str = Field(default="fallback", description="'ai' or 'fallback'")
    timestamp: str = ""

    @field_validator("complexity", mode="before")
    @classmethod
    def _coerce_complexity(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            return lowered if lowered in {c.value for c in Complexity} else Complexity.MEDIUM
        return value

    @field_validator("ui_style", mode="before")
    @classmethod
    def _coerce_ui_style(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            return lowered if lowered in {s.value for s in UIStyle} else UIStyle.MATERIAL
        return value

    @property
    def screens(self) -> list[str]:
        return self.features.screens


# ---------------------------------------------------------------------------
# Generated project
# ---------------------------------------------------------------------------

class GeneratedProject(_WireModel):
    """One generation result: identity, inputs and the rendered file mapping."""

    project_id: str
    app_name: str
    package_name: str
    features: FeatureSet
    files: dict[str, str] = Field(default_factory=dict)
