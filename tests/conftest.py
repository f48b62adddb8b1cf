"""Shared pytest fixtures for the RAHL test suite.

Provides reusable fixtures for:
- Feature sets covering the default, login/camera/maps and all-flags cases
- A synthesizer and an enricher using the packaged templates
- A well-formed JSON analysis reply from the model
- An orchestrator wired to an in-memory store with AI disabled
"""

from __future__ import annotations

import json
import random

import pytest

from rahl.analyzer import AppAnalyzer
from rahl.config import Config, GenerationConfig
from rahl.orchestrator import GenerationOrchestrator
from rahl.parser.models import AppAnalysis, FeatureSet, Theme
from rahl.scaffolder.enricher import ProjectEnricher
from rahl.scaffolder.generator import ProjectSynthesizer
from rahl.store import InMemoryProjectStore


# ---------------------------------------------------------------------------
# Feature sets
# ---------------------------------------------------------------------------

@pytest.fixture
def default_features() -> FeatureSet:
    """What the extractor returns for a description with no triggers."""
    return FeatureSet()


@pytest.fixture
def rich_features() -> FeatureSet:
    """Login, camera and maps switched on, dark theme."""
    return FeatureSet(
        screens=["LoginScreen"],
        has_login=True,
        has_camera=True,
        has_maps=True,
        theme=Theme.DARK,
    )


@pytest.fixture
def all_features() -> FeatureSet:
    """Every flag on, three screens."""
    return FeatureSet(
        screens=["HomeScreen", "LoginScreen", "SettingsScreen"],
        has_login=True,
        has_database=True,
        has_camera=True,
        has_maps=True,
        has_payments=True,
        has_notifications=True,
        theme=Theme.DARK,
    )


@pytest.fixture
def sample_analysis(all_features: FeatureSet) -> AppAnalysis:
    return AppAnalysis(
        app_name="Recipe Box",
        package_name="com.rahl.recipebox",
        features=all_features,
        description="Save and share family recipes",
        target_audience="Home cooks",
        complexity="medium",
    )


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

@pytest.fixture
def synthesizer() -> ProjectSynthesizer:
    return ProjectSynthesizer()


@pytest.fixture
def enricher() -> ProjectEnricher:
    return ProjectEnricher()


@pytest.fixture
def offline_analyzer() -> AppAnalyzer:
    """Analyzer with no model client and a seeded random source."""
    return AppAnalyzer(client=None, rng=random.Random(7))


@pytest.fixture
def offline_config(tmp_path) -> Config:
    return Config(
        output_dir=tmp_path / "output",
        generation=GenerationConfig(use_ai=False),
    )


@pytest.fixture
def orchestrator(offline_config: Config, offline_analyzer: AppAnalyzer) -> GenerationOrchestrator:
    return GenerationOrchestrator(
        offline_config,
        store=InMemoryProjectStore(),
        analyzer=offline_analyzer,
    )


# ---------------------------------------------------------------------------
# Model replies
# ---------------------------------------------------------------------------

@pytest.fixture
def ai_analysis_reply() -> str:
    """A well-formed model reply for the analysis prompt."""
    return json.dumps(
        {
            "appName": "Trail Buddy",
            "packageName": "com.example.ignored",
            "screens": ["HomeScreen", "MapScreen", "ProfileScreen"],
            "features": {
                "hasLogin": True,
                "hasDatabase": False,
                "hasCamera": False,
                "hasMaps": True,
                "hasPayments": False,
                "hasNotifications": True,
                "theme": "dark",
            },
            "description": "Find and log hiking trails",
            "targetAudience": "Hikers",
            "complexity": "high",
            "dependencies": ["google_maps_flutter"],
            "uiStyle": "material",
            "colorScheme": {
                "primary": "#2E7D32",
                "secondary": "#FFB300",
                "background": "#FAFAFA",
            },
        }
    )
