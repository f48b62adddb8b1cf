"""Tests for the enriched project variant (rahl.scaffolder.enricher).

Covers:
- Per-screen file paths and template screens
- Enriched main.dart imports, routes and colour seeding
- Enriched pubspec dependency table
- enrich() keeps the base files and never mutates its input
"""

from __future__ import annotations

import pytest
import yaml

from rahl.parser.models import AppAnalysis, ColorScheme, FeatureSet, Theme
from rahl.scaffolder.enricher import (
    ENRICHED_DEPENDENCY_FRAGMENTS,
    ProjectEnricher,
    screen_path,
)
from rahl.scaffolder.generator import (
    BASE_FILES,
    MAIN_DART_PATH,
    PUBSPEC_PATH,
    ProjectSynthesizer,
    dependency_fragments,
)


pytestmark = pytest.mark.unit


def _analysis(features: FeatureSet, **overrides) -> AppAnalysis:
    return AppAnalysis(
        app_name=overrides.pop("app_name", "Trail Buddy"),
        package_name=overrides.pop("package_name", "com.rahl.trailbuddy"),
        features=features,
        **overrides,
    )


# ---------------------------------------------------------------------------
# Screens
# ---------------------------------------------------------------------------


class TestScreens:
    def test_screen_path_is_lowercased(self):
        assert screen_path("LoginScreen") == "lib/screens/loginscreen.dart"

    def test_render_screen_uses_primary_colour(self, enricher: ProjectEnricher):
        analysis = _analysis(FeatureSet(), color_scheme=ColorScheme(primary="#2e7d32"))
        out = enricher.render_screen("HomeScreen", analysis)
        assert "class HomeScreen extends StatelessWidget" in out
        assert "const Color(0xFF2E7D32)" in out
        assert "RAHL Generated Screen" in out

    def test_render_screen_with_login(self, enricher: ProjectEnricher):
        analysis = _analysis(FeatureSet(has_login=True))
        out = enricher.render_screen("LoginScreen", analysis)
        assert "ElevatedButton(" in out
        assert "RAHL Generated Screen" not in out


# ---------------------------------------------------------------------------
# main.dart / pubspec.yaml
# ---------------------------------------------------------------------------


class TestEnrichedMain:
    def test_imports_and_routes(self, enricher, all_features):
        out = enricher.render_main(_analysis(all_features))
        for screen in all_features.screens:
            assert f"import 'screens/{screen.lower()}.dart';" in out
            assert f"'/{screen.lower()}': (context) => const {screen}()," in out
        assert "home: const HomeScreen()," in out
        assert "class TrailBuddy extends StatelessWidget" in out

    def test_root_widget_never_shadows_a_screen(self, enricher):
        features = FeatureSet(screens=["MapScreen", "ProfileScreen"])
        out = enricher.render_main(_analysis(features, app_name="Map Screen"))
        assert "class MapScreenApp extends StatelessWidget" in out
        assert "class MapScreen extends" not in out

    def test_brightness_follows_theme(self, enricher):
        dark = enricher.render_main(_analysis(FeatureSet(theme=Theme.DARK)))
        light = enricher.render_main(_analysis(FeatureSet()))
        assert "brightness: Brightness.dark," in dark
        assert "brightness: Brightness.light," in light

    def test_seed_colour(self, enricher):
        out = enricher.render_main(_analysis(FeatureSet()))
        assert "seedColor: const Color(0xFF7C3AED)," in out


class TestEnrichedPubspec:
    def test_full_dependency_table(self, enricher, all_features):
        data = yaml.safe_load(enricher.render_pubspec(_analysis(all_features)))
        deps = data["dependencies"]
        for _, packages in ENRICHED_DEPENDENCY_FRAGMENTS:
            for package, version in packages:
                assert deps[package] == version
        assert data["dev_dependencies"]["flutter_lints"] == "^2.0.0"
        assert data["environment"]["flutter"] == ">=3.0.0"

    def test_table_order(self, all_features):
        names = [p for p, _ in dependency_fragments(all_features, ENRICHED_DEPENDENCY_FRAGMENTS)]
        assert names == [
            "firebase_auth",
            "firebase_core",
            "cloud_firestore",
            "camera",
            "image_picker",
            "google_maps_flutter",
            "geolocator",
            "in_app_purchase",
            "firebase_messaging",
        ]

    def test_description_is_quoted(self, enricher):
        analysis = _analysis(FeatureSet(), description='Tracks: "all" the things')
        data = yaml.safe_load(enricher.render_pubspec(analysis))
        assert data["description"] == 'Tracks: "all" the things'
        assert data["name"] == "trail_buddy"

    def test_default_description(self, enricher):
        data = yaml.safe_load(enricher.render_pubspec(_analysis(FeatureSet())))
        assert data["description"] == "A RAHL-generated Flutter application"


# ---------------------------------------------------------------------------
# enrich()
# ---------------------------------------------------------------------------


class TestEnrich:
    def test_adds_screens_and_keeps_base_files(self, enricher, all_features):
        analysis = _analysis(all_features)
        base = ProjectSynthesizer().synthesize(
            "", analysis.app_name, all_features, analysis.package_name
        )
        snapshot = dict(base)

        files = enricher.enrich(base, analysis)

        assert base == snapshot
        for path in BASE_FILES:
            assert path in files
        assert files[MAIN_DART_PATH] != base[MAIN_DART_PATH]
        assert files[PUBSPEC_PATH] != base[PUBSPEC_PATH]
        assert list(files)[len(BASE_FILES):] == [
            "lib/screens/homescreen.dart",
            "lib/screens/loginscreen.dart",
            "lib/screens/settingsscreen.dart",
        ]

    def test_screen_sources_override_template(self, enricher):
        analysis = _analysis(FeatureSet())
        custom = "class HomeScreen {}\n"
        files = enricher.enrich({}, analysis, {"HomeScreen": custom})
        assert files["lib/screens/homescreen.dart"] == custom
        assert "class ProfileScreen extends StatelessWidget" in files[
            "lib/screens/profilescreen.dart"
        ]

    def test_deterministic(self, enricher, sample_analysis):
        assert enricher.enrich({}, sample_analysis) == ProjectEnricher().enrich(
            {}, sample_analysis
        )
