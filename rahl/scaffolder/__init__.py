"""RAHL scaffolder -- renders Flutter project files from a ``FeatureSet``.

Quick usage::

    from rahl.scaffolder import ProjectSynthesizer

    project = ProjectSynthesizer().generate_project("App with login", "My App")
    print(sorted(project.files))
"""

from rahl.scaffolder.generator import (
    BASE_FILES,
    ProjectSynthesizer,
    derive_package_name,
    synthesize,
    to_class_name,
)
from rahl.scaffolder.enricher import ProjectEnricher
from rahl.scaffolder.templates import TemplateRenderer

__all__ = [
    "BASE_FILES",
    "ProjectEnricher",
    "ProjectSynthesizer",
    "TemplateRenderer",
    "derive_package_name",
    "synthesize",
    "to_class_name",
]
