"""Enriched project variant built from an ``AppAnalysis``.

Adds one ``lib/screens/<screen>.dart`` file per screen and replaces the base
``lib/main.dart`` and ``pubspec.yaml`` with richer versions that import the
screen files, seed the theme from the analysis colour scheme and pull in the
full per-feature dependency table.
"""

from __future__ import annotations

from typing import Any

from rahl.parser.models import AppAnalysis, FeatureSet, Theme

from .generator import (
    FRAMEWORK_CLASSES,
    MAIN_DART_PATH,
    PUBSPEC_PATH,
    dependency_fragments,
    to_class_name,
    to_pubspec_name,
)
from .templates import TemplateRenderer


ENRICHED_DEPENDENCY_FRAGMENTS: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = (
    ("has_login", (("firebase_auth", "^4.2.5"), ("firebase_core", "^2.24.1"))),
    ("has_database", (("cloud_firestore", "^4.8.4"),)),
    ("has_camera", (("camera", "^0.10.5"), ("image_picker", "^0.8.9"))),
    ("has_maps", (("google_maps_flutter", "^2.2.3"), ("geolocator", "^10.0.0"))),
    ("has_payments", (("in_app_purchase", "^3.1.9"),)),
    ("has_notifications", (("firebase_messaging", "^14.7.7"),)),
)


def screen_path(screen: str) -> str:
    """``LoginScreen`` -> ``lib/screens/loginscreen.dart``."""
    return f"lib/screens/{screen.lower()}.dart"


class ProjectEnricher:
    """Overlays analysis-driven content on top of a base file mapping."""

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()

    def render_screen(self, screen: str, analysis: AppAnalysis) -> str:
        """Render the template version of one screen widget."""
        return self.renderer.render(
            "lib/screen.dart.j2",
            {
                "screen": screen,
                "primary_color": analysis.color_scheme.dart("primary"),
                "has_login": analysis.features.has_login,
            },
        )

    def render_main(self, analysis: AppAnalysis) -> str:
        return self.renderer.render("enriched/main.dart.j2", self._context(analysis))

    def render_pubspec(self, analysis: AppAnalysis) -> str:
        return self.renderer.render("enriched/pubspec.yaml.j2", self._context(analysis))

    def enrich(
        self,
        files: dict[str, str],
        analysis: AppAnalysis,
        screen_sources: dict[str, str] | None = None,
    ) -> dict[str, str]:
        """Return a new mapping with screen files added and main/pubspec replaced.

        Args:
            files: Base mapping from the synthesizer. Not modified.
            analysis: Analysis whose features and colours drive the output.
            screen_sources: Optional ``{screen: dart source}``, e.g. model
                generated code.  Screens without an entry use the template.
        """
        screen_sources = screen_sources or {}
        enriched = dict(files)
        enriched[MAIN_DART_PATH] = self.render_main(analysis)
        enriched[PUBSPEC_PATH] = self.render_pubspec(analysis)
        for screen in analysis.features.screens:
            source = screen_sources.get(screen) or self.render_screen(screen, analysis)
            enriched[screen_path(screen)] = source
        return enriched

    def _context(self, analysis: AppAnalysis) -> dict[str, Any]:
        features: FeatureSet = analysis.features
        return {
            "app_name": analysis.app_name,
            "class_name": to_class_name(
                analysis.app_name, taken=(*FRAMEWORK_CLASSES, *features.screens)
            ),
            "pubspec_name": to_pubspec_name(analysis.app_name),
            "description": analysis.description or "A RAHL-generated Flutter application",
            "primary_color": analysis.color_scheme.dart("primary"),
            "brightness": (
                "Brightness.dark" if features.theme == Theme.DARK else "Brightness.light"
            ),
            "screens": features.screens,
            "dependencies": dependency_fragments(features, ENRICHED_DEPENDENCY_FRAGMENTS),
        }
