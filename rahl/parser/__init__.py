"""Feature inference for app descriptions.

Usage::

    from rahl.parser import extract

    features = extract("App with login and camera")
    print(features.screens, features.has_camera)
"""

from rahl.parser.models import (
    AppAnalysis,
    ColorScheme,
    Complexity,
    FeatureSet,
    GeneratedProject,
    Theme,
    UIStyle,
)
from rahl.parser.extractor import extract

__all__ = [
    "extract",
    "AppAnalysis",
    "ColorScheme",
    "Complexity",
    "FeatureSet",
    "GeneratedProject",
    "Theme",
    "UIStyle",
]
