"""S1API plugin manifest."""

from fluxhost.plugins.base import PluginManifest, on_language, on_project

S1API_PROJECT_TYPE = "s1api"

S1API_PLUGIN_MANIFEST = PluginManifest(
    id="fluxel.s1api",
    name="S1API Support",
    version="1.0.0",
    description=(
        "Provides IntelliSense, syntax highlighting, and documentation "
        "for S1API mod development."
    ),
    author="Fluxel",
    repository="https://github.com/ifbars/S1API",
    activation_events=(on_language("csharp"), on_project(S1API_PROJECT_TYPE)),
    is_core=True,
)
