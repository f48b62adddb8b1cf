"""Project synthesizer: ``FeatureSet`` + names -> Flutter file mapping.

Renders the five base files of a Flutter project (pubspec, entry point,
Android manifest, iOS Info.plist, README) from fixed Jinja2 templates.
Feature-conditional dependency and permission fragments are declared below as
ordered data, so the order in which they land in each file is fixed and can
be tested without rendering anything.

Synthesis is pure: no file-system or network access, and identical inputs
always produce byte-identical output.
"""

from __future__ import annotations

import re
import time
from typing import Any, Callable, Iterable

from rahl.parser.extractor import extract
from rahl.parser.models import FeatureSet, GeneratedProject, Theme

from .templates import TemplateRenderer


# ---------------------------------------------------------------------------
# Output layout
# ---------------------------------------------------------------------------

PUBSPEC_PATH = "pubspec.yaml"
MAIN_DART_PATH = "lib/main.dart"
ANDROID_MANIFEST_PATH = "android/app/src/main/AndroidManifest.xml"
IOS_INFO_PLIST_PATH = "ios/Runner/Info.plist"
README_PATH = "README.md"

BASE_FILES: tuple[str, ...] = (
    PUBSPEC_PATH,
    MAIN_DART_PATH,
    ANDROID_MANIFEST_PATH,
    IOS_INFO_PLIST_PATH,
    README_PATH,
)

# output path -> template path
_TEMPLATES: dict[str, str] = {
    PUBSPEC_PATH: "pubspec.yaml.j2",
    MAIN_DART_PATH: "lib/main.dart.j2",
    ANDROID_MANIFEST_PATH: "android/AndroidManifest.xml.j2",
    IOS_INFO_PLIST_PATH: "ios/Info.plist.j2",
    README_PATH: "README.md.j2",
}

DEFAULT_NAMESPACE = "com.rahl"
DEFAULT_APP_NAME = "RAHLApp"

# Keywords and built-in identifiers that cannot name a Dart class.
DART_RESERVED_WORDS: frozenset[str] = frozenset(
    """
    abstract as assert async await base break case catch class const continue
    covariant default deferred do dynamic else enum export extends extension
    external factory false final finally for Function get hide if implements
    import in interface is late library mixin new null of on operator part
    required rethrow return sealed set show static super switch sync this
    throw true try type typedef var void when while with yield
    """.split()
)

# Flutter types the generated entry points refer to by name.
FRAMEWORK_CLASSES: tuple[str, ...] = (
    "BuildContext", "Color", "ColorScheme", "MaterialApp", "StatelessWidget",
    "Text", "ThemeData", "Widget",
)

# Classes the base entry point always declares besides the root widget.
FIXED_SCREEN_CLASSES: tuple[str, ...] = ("HomeScreen",)


# ---------------------------------------------------------------------------
# Feature-conditional fragments (append order is the tuple order)
# ---------------------------------------------------------------------------

DEPENDENCY_FRAGMENTS: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = (
    ("has_login", (("firebase_auth", "^4.2.5"),)),
    ("has_camera", (("camera", "^0.10.5"),)),
    ("has_maps", (("google_maps_flutter", "^2.2.3"),)),
)

ANDROID_PERMISSIONS: tuple[tuple[str, str], ...] = (
    ("has_camera", "android.permission.CAMERA"),
    ("has_maps", "android.permission.ACCESS_FINE_LOCATION"),
)

IOS_PERMISSIONS: tuple[tuple[str, str, str], ...] = (
    ("has_camera", "NSCameraUsageDescription", "Camera access is needed to take photos"),
    ("has_maps", "NSLocationWhenInUseUsageDescription", "Location access is needed for maps"),
)


def dependency_fragments(
    features: FeatureSet,
    table: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = DEPENDENCY_FRAGMENTS,
) -> list[tuple[str, str]]:
    """Return the ``(package, version)`` pairs enabled by *features*, in table order."""
    pairs: list[tuple[str, str]] = []
    for flag, packages in table:
        if getattr(features, flag):
            pairs.extend(packages)
    return pairs


def android_permissions(features: FeatureSet) -> list[str]:
    return [name for flag, name in ANDROID_PERMISSIONS if getattr(features, flag)]


def ios_permissions(features: FeatureSet) -> list[tuple[str, str]]:
    return [(key, usage) for flag, key, usage in IOS_PERMISSIONS if getattr(features, flag)]


# ---------------------------------------------------------------------------
# Name derivation
# ---------------------------------------------------------------------------

def derive_package_name(app_name: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    """``"My App"`` -> ``"com.rahl.myapp"`` (lowercased, all whitespace removed)."""
    suffix = re.sub(r"\s+", "", app_name.lower())
    return f"{namespace}.{suffix}"


def to_class_name(app_name: str, taken: Iterable[str] = ()) -> str:
    """Derive the Dart root widget type name from a display name.

    Whitespace is removed (``"My App"`` -> ``"MyApp"``).  Characters that
    remain illegal in a Dart identifier are dropped, and an ``App`` prefix is
    added when the result would be empty or start with a digit.  Reserved
    words and names in *taken* (the screen classes emitted beside the root
    widget) get an ``App`` suffix until the name is free.
    """
    name = re.sub(r"\s+", "", app_name)
    name = re.sub(r"[^A-Za-z0-9_]", "", name)
    if not name or name[0].isdigit():
        name = "App" + name
    used = set(taken)
    while name in DART_RESERVED_WORDS or name in used:
        name += "App"
    return name


def to_pubspec_name(app_name: str) -> str:
    """Derive a Dart package name: ``"My App"`` -> ``"my_app"``."""
    name = re.sub(r"\s+", "_", app_name.strip().lower())
    name = re.sub(r"[^a-z0-9_]", "", name)
    if not name or name[0].isdigit():
        name = "app_" + name
    return name.rstrip("_") or "app"


def new_project_id(clock: Callable[[], float] = time.time) -> str:
    """Return ``rahl_<epoch milliseconds>``.

    Only unique at millisecond granularity; callers that keep many projects
    in one table must resolve collisions themselves.
    """
    return f"rahl_{int(clock() * 1000)}"


# ---------------------------------------------------------------------------
# Synthesizer
# ---------------------------------------------------------------------------


class ProjectSynthesizer:
    """Renders the base Flutter file set for a ``FeatureSet``.

    The synthesizer only depends on the ``FeatureSet`` type, so features
    produced by the keyword extractor and features produced by the AI
    analyzer are handled identically.
    """

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        namespace: str = DEFAULT_NAMESPACE,
        default_app_name: str = DEFAULT_APP_NAME,
    ) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.namespace = namespace
        self.default_app_name = default_app_name

    # -- Public API --------------------------------------------------------

    def synthesize(
        self,
        description: str,
        app_name: str,
        features: FeatureSet,
        package_name: str,
    ) -> dict[str, str]:
        """Render the five base files.

        *description* is accepted for interface symmetry with the enriched
        pipeline; the base templates do not embed it, so output depends only
        on ``(app_name, features, package_name)``.

        Returns:
            ``{relative path: content}`` with keys in ``BASE_FILES`` order.
        """
        context = self._build_context(app_name, features, package_name)
        return {
            path: self.renderer.render(_TEMPLATES[path], context)
            for path in BASE_FILES
        }

    def generate_project(
        self,
        description: str,
        app_name: str | None = None,
        project_id: str | None = None,
    ) -> GeneratedProject:
        """Run extraction and synthesis for one request."""
        app_name = app_name or self.default_app_name
        package_name = derive_package_name(app_name, self.namespace)
        features = extract(description)
        return self.build_project(
            description, app_name, features, package_name, project_id=project_id
        )

    def build_project(
        self,
        description: str,
        app_name: str,
        features: FeatureSet,
        package_name: str,
        project_id: str | None = None,
    ) -> GeneratedProject:
        """Wrap :meth:`synthesize` output in a ``GeneratedProject``."""
        return GeneratedProject(
            project_id=project_id or new_project_id(),
            app_name=app_name,
            package_name=package_name,
            features=features,
            files=self.synthesize(description, app_name, features, package_name),
        )

    # -- Internals ---------------------------------------------------------

    def _build_context(
        self, app_name: str, features: FeatureSet, package_name: str
    ) -> dict[str, Any]:
        return {
            "app_name": app_name,
            "class_name": to_class_name(
                app_name, taken=(*FRAMEWORK_CLASSES, *FIXED_SCREEN_CLASSES, *features.screens)
            ),
            "pubspec_name": to_pubspec_name(app_name),
            "package_name": package_name,
            "theme_expression": (
                "ThemeData.dark()" if features.theme == Theme.DARK else "ThemeData.light()"
            ),
            "screens": features.screens,
            "dependencies": dependency_fragments(features),
            "android_permissions": android_permissions(features),
            "ios_permissions": ios_permissions(features),
        }


_default_synthesizer: ProjectSynthesizer | None = None


def synthesize(
    description: str,
    app_name: str,
    features: FeatureSet,
    package_name: str,
) -> dict[str, str]:
    """Module-level shortcut for :meth:`ProjectSynthesizer.synthesize`."""
    global _default_synthesizer
    if _default_synthesizer is None:
        _default_synthesizer = ProjectSynthesizer()
    return _default_synthesizer.synthesize(description, app_name, features, package_name)
