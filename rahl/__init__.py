"""RAHL -- Rapid App Helper & Launcher.

Turns a plain-English app description into a skeleton Flutter project.

Quick usage::

    from rahl import ProjectSynthesizer, extract

    features = extract("A todo list app with dark mode")
    files = ProjectSynthesizer().synthesize(
        "A todo list app with dark mode", "My App", features, "com.rahl.myapp"
    )
"""

from rahl.parser import FeatureSet, GeneratedProject, Theme, extract
from rahl.scaffolder import ProjectSynthesizer, derive_package_name, synthesize

__all__ = [
    "FeatureSet",
    "GeneratedProject",
    "ProjectSynthesizer",
    "Theme",
    "derive_package_name",
    "extract",
    "synthesize",
]

__version__ = "0.1.0"
