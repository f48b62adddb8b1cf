"""AI analysis of app descriptions with a rule-based fallback.

The analyzer asks a local model (through ``OllamaClient``) for a JSON
analysis of the user's description, validates it into an ``AppAnalysis`` and
enhances it with derived fields (development-time estimate, widget list, file
structure, recommendations).  Whenever the model is unreachable or replies
with something unusable, the keyword extractor takes over, so
``analyze_description`` always returns a complete analysis.
"""

from __future__ import annotations

import asyncio
import json
import random
import re
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from rahl.llm_client import OllamaClient
from rahl.parser.extractor import extract
from rahl.parser.models import DEFAULT_SCREENS, AppAnalysis, Complexity
from rahl.scaffolder.enricher import ProjectEnricher, screen_path
from rahl.scaffolder.generator import DEFAULT_NAMESPACE, derive_package_name
from rahl.utils import print_warning


# ---------------------------------------------------------------------------
# Prompts & constants
# ---------------------------------------------------------------------------

ANALYSIS_SYSTEM_PROMPT = """\
You are RAHL (Rapid App Helper & Launcher), an expert Flutter developer that \
plans complete mobile applications from plain-English descriptions.

Reply with ONE JSON object and nothing else, using exactly this structure:
{
  "appName": "Creative name based on the description",
  "screens": ["HomeScreen", "SettingsScreen"],
  "features": {
    "hasLogin": false,
    "hasDatabase": false,
    "hasCamera": false,
    "hasMaps": false,
    "hasPayments": false,
    "hasNotifications": false,
    "theme": "light"
  },
  "description": "One sentence app description",
  "targetAudience": "Who the app is for",
  "complexity": "low",
  "dependencies": ["package1", "package2"],
  "uiStyle": "material",
  "colorScheme": {"primary": "#7C3AED", "secondary": "#10B981", "background": "#FFFFFF"}
}

Rules:
- theme is "light" or "dark"; complexity is "low", "medium" or "high";
  uiStyle is "material", "cupertino" or "both".
- Keep between 2 and 5 screens, PascalCase, each ending in "Screen".
- Include a home screen and settings where sensible.
"""

SCREEN_SYSTEM_PROMPT = (
    "You are a Flutter expert. Return ONLY Dart code, no markdown, no explanations."
)

DEV_TIME_BY_COMPLEXITY: dict[Complexity, str] = {
    Complexity.LOW: "2-4 hours",
    Complexity.MEDIUM: "1-2 days",
    Complexity.HIGH: "3-5 days",
}

BASE_WIDGETS: tuple[str, ...] = (
    "AppBar", "Scaffold", "Container", "Column", "Row",
    "ListView", "GridView", "Card", "Button", "TextField",
    "Image", "Icon", "Text", "Padding", "Margin",
)

ENHANCED_DEFAULT_SCREENS: tuple[str, ...] = ("HomeScreen", "DetailsScreen")

NAME_PREFIXES: tuple[str, ...] = ("My", "Quick", "Smart", "Easy", "Pro")
NAME_SUFFIXES: tuple[str, ...] = ("App", "Tool", "Manager", "Tracker", "Hub")

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n(.*?)\n?```\s*$", re.DOTALL)


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------


class AppAnalyzer:
    """Produces ``AppAnalysis`` records and per-screen Dart code.

    Args:
        client: Ollama client; ``None`` disables model calls entirely.
        namespace: Reverse-domain prefix for derived package names.
        rng: Random source for fallback app names (inject for determinism).
        enricher: Renders template screens when the model cannot.
    """

    def __init__(
        self,
        client: OllamaClient | None = None,
        namespace: str = DEFAULT_NAMESPACE,
        rng: random.Random | None = None,
        enricher: ProjectEnricher | None = None,
    ) -> None:
        self.client = client
        self.namespace = namespace
        self.rng = rng or random.Random()
        self.enricher = enricher or ProjectEnricher()

    # -- Analysis ----------------------------------------------------------

    async def analyze_description(self, description: str) -> AppAnalysis:
        """Analyse *description* with the model, falling back to keyword rules."""
        if self.client is None:
            return self.fallback_analysis(description)

        response = await self.client.generate_with_fallback(
            description, system=ANALYSIS_SYSTEM_PROMPT, json_mode=True
        )
        if not response.success:
            print_warning(f"AI analysis unavailable, using rules: {response.error}")
            return self.fallback_analysis(description)

        try:
            analysis = self.parse_analysis(response.text)
        except (TypeError, ValueError, ValidationError) as exc:
            print_warning(f"AI analysis unusable, using rules: {exc}")
            return self.fallback_analysis(description)

        return self.enhance_analysis(analysis, source="ai")

    def parse_analysis(self, raw: str) -> AppAnalysis:
        """Validate a model reply into an ``AppAnalysis``.

        Raises:
            ValueError: If the reply is not a JSON object, or its
                ``features``/``screens`` have the wrong shape.
            pydantic.ValidationError: If a field has an unusable type.
        """
        data = json.loads(_strip_code_fence(raw))
        if not isinstance(data, dict):
            raise ValueError("analysis reply is not a JSON object")

        raw_features = data.get("features") or {}
        if not isinstance(raw_features, dict):
            raise ValueError("analysis \"features\" is not a JSON object")
        screens = data.get("screens") or list(ENHANCED_DEFAULT_SCREENS)
        if not isinstance(screens, (list, str)):
            raise ValueError("analysis \"screens\" is not a list")

        features: dict[str, Any] = dict(raw_features)
        if "theme" not in features and "theme" in data:
            features["theme"] = data["theme"]
        features["screens"] = screens

        app_name = str(data.get("appName") or "").strip() or "RAHL App"
        payload = {
            key: data[key]
            for key in (
                "description",
                "targetAudience",
                "complexity",
                "dependencies",
                "uiStyle",
                "colorScheme",
            )
            if data.get(key) is not None
        }
        return AppAnalysis.model_validate(
            {
                **payload,
                "appName": app_name,
                "packageName": derive_package_name(app_name, self.namespace),
                "features": features,
            }
        )

    def enhance_analysis(self, analysis: AppAnalysis, source: str = "ai") -> AppAnalysis:
        """Fill in the derived fields of *analysis*."""
        features = analysis.features
        screens = features.screens

        file_structure = ["lib/main.dart", "lib/app.dart", "pubspec.yaml", "README.md"]
        file_structure += [screen_path(s) for s in screens]
        if features.has_login:
            file_structure.append("lib/services/auth_service.dart")
        if features.has_database:
            file_structure.append("lib/services/database_service.dart")
        if features.has_camera:
            file_structure.append("lib/services/camera_service.dart")

        recommendations: list[str] = []
        if features.has_login:
            recommendations.append("Add Firebase Authentication for user management")
        if features.has_database:
            recommendations.append("Use Firebase Firestore or SQLite for data storage")
        if features.has_maps:
            recommendations.append("Integrate Google Maps API (requires API key)")
        if analysis.complexity == Complexity.HIGH:
            recommendations.append("Consider starting with MVP version first")

        return analysis.model_copy(
            update={
                "estimated_development_time": DEV_TIME_BY_COMPLEXITY.get(
                    analysis.complexity, "1-2 days"
                ),
                "widgets": [*BASE_WIDGETS, *(f"{s} Widget" for s in screens)],
                "file_structure": file_structure,
                "recommendations": recommendations,
                "source": source,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )

    def fallback_analysis(self, description: str) -> AppAnalysis:
        """Keyword-based analysis used whenever the model cannot help."""
        description = description or ""
        app_name = self.generate_app_name(description)
        summary = description if len(description) <= 100 else description[:100] + "..."
        analysis = AppAnalysis(
            app_name=app_name,
            package_name=derive_package_name(app_name, self.namespace),
            features=extract(description),
            description=summary,
            complexity=Complexity.MEDIUM if len(description.split()) > 20 else Complexity.LOW,
        )
        return self.enhance_analysis(analysis, source="fallback")

    def generate_app_name(self, description: str) -> str:
        """``"a recipe app"`` -> e.g. ``"Smart Recipe Hub"``."""
        words = [w for w in re.findall(r"[a-z0-9]+", (description or "").lower()) if len(w) > 3]
        keyword = words[0].capitalize() if words else "App"
        prefix = self.rng.choice(NAME_PREFIXES)
        suffix = self.rng.choice(NAME_SUFFIXES)
        return f"{prefix} {keyword} {suffix}"

    # -- Code generation ---------------------------------------------------

    async def generate_screen_code(self, screen: str, analysis: AppAnalysis) -> str:
        """Ask the model for one screen widget; fall back to the template."""
        if self.client is not None:
            prompt = (
                f"Generate a complete Flutter screen class named {screen}.\n"
                f"App features: {json.dumps(analysis.features.to_wire())}\n"
                f"Theme: {analysis.features.theme.value}\n"
                f"Color scheme: {json.dumps(analysis.color_scheme.to_wire())}\n\n"
                "Return ONLY the Dart code, no explanations."
            )
            response = await self.client.generate_with_fallback(
                prompt, system=SCREEN_SYSTEM_PROMPT
            )
            code = _strip_code_fence(response.text) if response.success else ""
            if f"class {screen}" in code:
                return code.rstrip() + "\n"
        return self.enricher.render_screen(screen, analysis)

    async def generate_code_snippets(self, analysis: AppAnalysis) -> dict[str, str]:
        """Return ``{screen: dart source}`` for every screen in *analysis*."""
        screens = analysis.features.screens or list(DEFAULT_SCREENS)
        sources = await asyncio.gather(
            *(self.generate_screen_code(screen, analysis) for screen in screens)
        )
        return dict(zip(screens, sources))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence, if any."""
    stripped = (text or "").strip()
    match = _CODE_FENCE.match(stripped)
    return match.group(1).strip() if match else stripped
