"""Unit tests for BuildContext."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from buildaccel_core.context import BuildContext, resolve_location


class TestResolveLocation:
    """Tests for resolve_location."""

    def test_file_uri(self, tmp_path: Path) -> None:
        """file:// URIs become absolute paths."""
        assert resolve_location("file:///srv/repo", tmp_path) == Path("/srv/repo")

    def test_relative_path(self, tmp_path: Path) -> None:
        """Relative paths are resolved against the root."""
        assert resolve_location("repo/releases", tmp_path) == tmp_path / "repo" / "releases"

    def test_absolute_path(self, tmp_path: Path) -> None:
        """Absolute paths are kept."""
        assert resolve_location("/srv/repo", tmp_path) == Path("/srv/repo")


class TestBuildContext:
    """Tests for BuildContext helpers."""

    def test_store_root(self, make_context: Callable[..., BuildContext], tmp_path: Path) -> None:
        """The store root is resolved against the workspace root."""
        context = make_context()
        assert context.store_root == tmp_path / ".buildaccel" / "artifacts"

    def test_required_variants_default_to_module_variants(
        self,
        make_context: Callable[..., BuildContext],
    ) -> None:
        """Without explicit variants every module variant is required."""
        context = make_context()
        module = context.registry.get(":infra:network")
        assert context.required_variants(module) == ("debug", "release")

    def test_active_exclusions(self, make_context: Callable[..., BuildContext]) -> None:
        """Active modules with settings are excluded from artifact edges."""
        context = make_context(workspace=(":feature:home", ":app"))
        # :app has no setting
        assert context.active_exclusions() == frozenset(
            {"com.demo:home-debug", "com.demo:home-release"}
        )

    def test_exclusions_match_published_coordinates(
        self,
        make_context: Callable[..., BuildContext],
    ) -> None:
        """Each exclusion is the group:artifact part of a published coordinate."""
        context = make_context(workspace=(":feature:home",))
        home = context.registry.get(":feature:home")
        setting = context.module_setting(home)
        assert setting is not None
        variants = context.required_variants(home)
        published = {setting.coordinate(v).rsplit(":", 1)[0] for v in variants}
        assert context.active_exclusions() == published

    def test_module_setting(self, make_context: Callable[..., BuildContext]) -> None:
        """Settings are found by module name."""
        context = make_context()
        setting = context.module_setting(context.registry.get(":infra:analytics"))
        assert setting is not None
        assert setting.version == "1.1.0-SNAPSHOT"
        assert context.module_setting(context.registry.get(":app")) is None
