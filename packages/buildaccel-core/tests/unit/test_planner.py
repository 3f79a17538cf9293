"""Unit tests for the two-phase build planner."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from structlog.testing import capture_logs

from buildaccel_core.context import BuildContext
from buildaccel_core.errors import ModuleNotFoundInWorkspaceError
from buildaccel_core.graph.build_graph import FrozenBuildGraph
from buildaccel_core.graph.models import ArtifactDependency, StepKind
from buildaccel_core.graph.rewriter import SkipReason
from buildaccel_core.planner import BuildGoal, BuildPlanner, match_target_variant
from buildaccel_core.schemas import WorkspaceSpec
from buildaccel_core.store.artifact_store import ArtifactSnapshot, ArtifactStore
from buildaccel_core.workspace.registry import ModuleRegistry

LIBRARIES = {":feature:home", ":feature:payments", ":infra:network", ":infra:analytics", ":ui:proton"}

APP_STEPS = {
    ":app:assembleHkDebug",
    ":app:assembleHkRelease",
    ":app:assembleSgDebug",
    ":app:assembleSgRelease",
}


class CountingStore(ArtifactStore):
    """Artifact store that counts scans."""

    scans = 0

    def scan(self) -> ArtifactSnapshot:
        self.scans += 1
        return super().scan()


class TestMatchTargetVariant:
    """Tests for match_target_variant."""

    def test_flavored_consumer_uses_build_type(self, registry: ModuleRegistry) -> None:
        """hkDebug builds against a library's debug variant."""
        consumer = registry.get(":app").variants[0]
        matched = match_target_variant(consumer, registry.get(":infra:network"))
        assert matched is not None
        assert matched.name == "debug"

    def test_exact_name_wins(self, registry: ModuleRegistry) -> None:
        """Same-named variants match directly."""
        consumer = registry.get(":feature:home").variants[1]
        matched = match_target_variant(consumer, registry.get(":infra:network"))
        assert matched is not None
        assert matched.name == "release"


class TestPlanPassThrough:
    """A disabled accelerator plans a plain source build."""

    @pytest.mark.requirement("BA-FR-006")
    def test_disabled_plan(
        self,
        make_context: Callable[..., BuildContext],
        stable_artifacts: Path,
    ) -> None:
        """No snapshot, no rewrites, every module built from source."""
        store = CountingStore(stable_artifacts)
        with capture_logs() as logs:
            plan = BuildPlanner(make_context(enabled=False), store=store).plan()

        assert store.scans == 0
        assert plan.decisions == ()
        assert len(plan.snapshot) == 0
        assert plan.artifact_backed == frozenset()
        assert any(log["event"] == "accelerator_disabled_pass_through" for log in logs)
        assert len(plan.requested) == 14

    def test_disabled_publish_has_no_publications(
        self,
        make_context: Callable[..., BuildContext],
    ) -> None:
        """The publish goal does nothing while disabled."""
        plan = BuildPlanner(make_context(enabled=False)).plan(BuildGoal.PUBLISH)
        assert plan.publications == ()
        assert plan.requested == ()


class TestPlanBuild:
    """Tests for the build goal."""

    @pytest.mark.requirement("BA-FR-006")
    def test_snapshot_is_taken_once(
        self,
        make_context: Callable[..., BuildContext],
        stable_artifacts: Path,
    ) -> None:
        """Every consumer is rewritten against a single scan."""
        store = CountingStore(stable_artifacts)
        plan = BuildPlanner(make_context(workspace=(":app",)), store=store).plan()
        assert store.scans == 1
        assert len(plan.snapshot) == 10

    def test_result_is_frozen(self, make_context: Callable[..., BuildContext]) -> None:
        """The plan holds a frozen graph."""
        plan = BuildPlanner(make_context(workspace=(":app",))).plan()
        assert isinstance(plan.graph, FrozenBuildGraph)

    @pytest.mark.requirement("BA-FR-003")
    def test_stable_libraries_are_artifact_backed(
        self,
        make_context: Callable[..., BuildContext],
        stable_artifacts: Path,
    ) -> None:
        """With every artifact present only :app is built."""
        plan = BuildPlanner(make_context(workspace=(":app",))).plan()

        assert plan.kept_as_source == []
        assert plan.artifact_backed == LIBRARIES
        assert set(plan.requested) == APP_STEPS
        for path in LIBRARIES:
            for step_id in (f"{path}:assembleDebug", f"{path}:assembleRelease"):
                assert not plan.graph.step(step_id).enabled

        app_edges = plan.graph.edges_of(":app")
        artifact_edges = [e for e in app_edges if isinstance(e, ArtifactDependency)]
        assert len(artifact_edges) == 6
        assert {e.configuration for e in artifact_edges} == {
            "debugImplementation",
            "releaseImplementation",
        }

    @pytest.mark.requirement("BA-FR-003")
    def test_active_library_is_built_from_source(
        self,
        make_context: Callable[..., BuildContext],
        stable_artifacts: Path,
    ) -> None:
        """An Active library is built and ordered before its consumers."""
        plan = BuildPlanner(make_context(workspace=(":app", ":feature:home"))).plan()

        assert plan.artifact_backed == LIBRARIES - {":feature:home"}
        assert set(plan.requested) == APP_STEPS | {
            ":feature:home:assembleDebug",
            ":feature:home:assembleRelease",
        }
        assert plan.graph.step(":app:assembleHkDebug").depends_on == {
            ":feature:home:assembleDebug"
        }
        kept = {(d.consumer, d.target) for d in plan.kept_as_source}
        assert kept == {(":app", ":feature:home")}

    def test_missing_artifacts_keep_source(
        self,
        make_context: Callable[..., BuildContext],
        write_artifacts: Callable[..., Path],
    ) -> None:
        """Libraries without complete artifacts are built from source."""
        write_artifacts(
            [
                "proton-debug-2.0.0.aar",
                "proton-release-2.0.0.aar",
                "network-debug-1.0.0.aar",
            ]
        )
        plan = BuildPlanner(make_context(workspace=(":app",))).plan()

        assert plan.artifact_backed == {":ui:proton"}
        reasons = {d.target: d.reason for d in plan.kept_as_source}
        assert reasons[":infra:network"] == SkipReason.ARTIFACTS_MISSING
        assert ":infra:network:assembleRelease" in plan.requested
        assert ":ui:proton:assembleDebug" not in plan.requested

    def test_targets_and_variants(self, make_context: Callable[..., BuildContext]) -> None:
        """Requested steps follow targets and variants."""
        plan = BuildPlanner(make_context(workspace=(":app",))).plan(
            targets=[":feature:payments"], variants=["release"]
        )
        assert set(plan.requested) == {
            ":infra:network:assembleRelease",
            ":infra:analytics:assembleRelease",
            ":feature:payments:assembleRelease",
        }
        assert plan.requested[-1] == ":feature:payments:assembleRelease"

    @pytest.mark.requirement("BA-FR-004")
    def test_scoped_source_dependency(
        self,
        make_context: Callable[..., BuildContext],
        sample_workspace: dict[str, Any],
    ) -> None:
        """A releaseImplementation dependency only orders the release steps."""
        payments = next(m for m in sample_workspace["modules"] if m["path"] == ":feature:payments")
        payments["dependencies"] = [
            ":infra:network",
            {"target": ":infra:analytics", "configuration": "releaseImplementation"},
        ]
        spec = WorkspaceSpec.model_validate(sample_workspace)
        context = make_context(spec=spec, workspace=(":app",))
        plan = BuildPlanner(context).plan(targets=[":feature:payments"])

        assert plan.graph.step(":feature:payments:assembleDebug").depends_on == {
            ":infra:network:assembleDebug"
        }
        assert plan.graph.step(":feature:payments:assembleRelease").depends_on == {
            ":infra:network:assembleRelease",
            ":infra:analytics:assembleRelease",
        }
        assert ":infra:analytics:assembleDebug" not in plan.requested

    @pytest.mark.requirement("BA-FR-004")
    def test_scoped_artifact_edge(
        self,
        make_context: Callable[..., BuildContext],
        sample_workspace: dict[str, Any],
        stable_artifacts: Path,
    ) -> None:
        """The rewritten edge keeps its scope and pulls only the release artifact."""
        payments = next(m for m in sample_workspace["modules"] if m["path"] == ":feature:payments")
        payments["dependencies"] = [
            ":infra:network",
            {"target": ":infra:analytics", "configuration": "releaseImplementation"},
        ]
        spec = WorkspaceSpec.model_validate(sample_workspace)
        plan = BuildPlanner(make_context(spec=spec, workspace=(":feature:payments",))).plan()

        edges = [
            (e.configuration, e.coordinate)
            for e in plan.graph.edges_of(":feature:payments")
            if isinstance(e, ArtifactDependency) and e.replaces == ":infra:analytics"
        ]
        assert edges == [
            ("releaseImplementation", "com.demo.infra:analytics-release:1.1.0-SNAPSHOT")
        ]

    def test_unknown_target(self, make_context: Callable[..., BuildContext]) -> None:
        """Unknown targets are rejected."""
        with pytest.raises(ModuleNotFoundInWorkspaceError):
            BuildPlanner(make_context()).plan(targets=[":feature:gone"])


class TestPlanPublish:
    """Tests for the publish goal."""

    @pytest.mark.requirement("BA-FR-005")
    def test_publishes_stable_modules_with_settings(
        self,
        make_context: Callable[..., BuildContext],
    ) -> None:
        """Every Stable library with a setting is published, each variant."""
        plan = BuildPlanner(make_context(workspace=(":app",))).plan(BuildGoal.PUBLISH)

        assert {d.module for d in plan.publications} == LIBRARIES
        assert len(plan.publications) == 10
        publish_steps = [s for s in plan.steps_to_run() if s.kind == StepKind.PUBLISH]
        assert len(publish_steps) == 20
        for step in publish_steps:
            assert f"{step.module}:assemble{step.variant.capitalize()}" in step.depends_on
        assert not APP_STEPS & set(plan.requested)

    def test_published_modules_keep_assemble_steps(
        self,
        make_context: Callable[..., BuildContext],
        stable_artifacts: Path,
    ) -> None:
        """Republishing rebuilds the module even when its artifacts exist."""
        plan = BuildPlanner(make_context(workspace=(":app",))).plan(
            BuildGoal.PUBLISH, targets=[":infra:network"]
        )
        assert ":infra:network" not in plan.artifact_backed
        assert plan.graph.step(":infra:network:assembleDebug").enabled
        assert set(plan.requested) == {
            ":infra:network:assembleDebug",
            ":infra:network:assembleRelease",
            ":infra:network:publishDebugPublicationToLocalStore",
            ":infra:network:publishDebugPublicationToReleaseRepository",
            ":infra:network:publishReleasePublicationToLocalStore",
            ":infra:network:publishReleasePublicationToReleaseRepository",
        }

    def test_variant_filter(self, make_context: Callable[..., BuildContext]) -> None:
        """Only the requested variants are published."""
        plan = BuildPlanner(make_context(workspace=(":app",))).plan(
            BuildGoal.PUBLISH, variants=["debug"]
        )
        assert {s.variant for s in plan.steps_to_run()} == {"debug"}
        assert len([s for s in plan.steps_to_run() if s.kind == StepKind.PUBLISH]) == 10

    def test_module_without_setting_is_not_published(
        self,
        make_context: Callable[..., BuildContext],
    ) -> None:
        """Explicit targets without a setting produce no publication."""
        plan = BuildPlanner(make_context()).plan(BuildGoal.PUBLISH, targets=[":app"])
        assert plan.publications == ()
        assert plan.requested == ()


class TestFromPaths:
    """Tests for BuildPlanner.from_paths."""

    def test_loads_workspace_and_properties(self, write_workspace: Callable[..., Path]) -> None:
        """Properties next to workspace.yaml are used by default."""
        workspace_file = write_workspace(
            "buildingAccelerator.enable=true\nbuildingAccelerator.workspace=:app\n"
        )
        planner = BuildPlanner.from_paths(workspace_file)
        assert planner.context.enabled
        assert planner.context.classification.active == {":app"}
        assert planner.context.root == workspace_file.parent.resolve()
        assert planner.store.root == workspace_file.parent.resolve() / ".buildaccel/artifacts"

    def test_missing_properties_disable(self, write_workspace: Callable[..., Path]) -> None:
        """Without accelerator.properties the build is a plain source build."""
        planner = BuildPlanner.from_paths(write_workspace(None))
        assert not planner.context.enabled

    def test_missing_workspace(self, tmp_path: Path) -> None:
        """A missing workspace.yaml is an error."""
        with pytest.raises(FileNotFoundError):
            BuildPlanner.from_paths(tmp_path / "workspace.yaml")
