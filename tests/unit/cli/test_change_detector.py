"""Unit tests for cli.change_detector module."""

import pytest

from notion_mirror.cli.change_detector import ChangeDetector
from notion_mirror.cli.models import MoveInfo
from notion_mirror.file_mapper.hierarchy_builder import HierarchyBuilder
from notion_mirror.file_mapper.models import Node, NodeKind, SyncConfig, SyncRecord, WORKSPACE_PARENT
from notion_mirror.file_mapper.path_resolver import PathResolver


def page(node_id, title, parent_id=WORKSPACE_PARENT, revision="r1"):
    return Node(node_id=node_id, title=title, kind=NodeKind.PAGE, parent_id=parent_id, revision=revision)


def detector_for(nodes, config=None):
    config = config or SyncConfig()
    graph = HierarchyBuilder().build_graph(nodes, config.filtered_ids)
    return ChangeDetector(graph, PathResolver(graph, config.root_folder_path), config)


def exists(*paths):
    return lambda path: path in paths


@pytest.fixture
def nodes():
    return [
        page("root", "Projects"),
        page("a", "Alpha", parent_id="root"),
        page("b", "Beta", parent_id="root"),
        page("a1", "Alpha child", parent_id="a"),
    ]


class TestDetectStale:
    """Test cases for ChangeDetector.detect_stale."""

    def test_reasons(self, nodes):
        # Arrange
        config = SyncConfig(filtered_ids=["b", "gone-but-filtered"])
        nodes = nodes + [Node("db", "Tasks", NodeKind.CONTAINER, "root", "r1")]
        detector = detector_for(nodes, config)
        records = {
            "a": SyncRecord("a", "Projects/Alpha.md", "r1"),
            "b": SyncRecord("b", "Projects/Beta.md", "r1"),
            "gone": SyncRecord("gone", "Projects/Gone.md", "r1"),
            "gone-but-filtered": SyncRecord("gone-but-filtered", "Projects/F.md", "r1"),
            "root": SyncRecord("root", "Projects.md", "r1"),
            "db": SyncRecord("db", "Projects/Tasks.md", "r1"),
        }

        # Act
        stale = {d.page_id: d.reason for d in detector.detect_stale(records)}

        # Assert
        assert stale == {
            "b": "excluded",
            "gone": "missing",
            "gone-but-filtered": "excluded",
            "root": "not_a_document",
            "db": "not_a_document",
        }

    def test_descendant_of_excluded_is_unreachable(self, nodes):
        detector = detector_for(nodes, SyncConfig(filtered_ids=["a"]))
        records = {"a1": SyncRecord("a1", "Projects/Alpha/Alpha child.md", "r1")}

        stale = detector.detect_stale(records)

        assert [(d.page_id, d.reason) for d in stale] == [("a1", "unreachable")]


class TestDetectMoves:
    """Test cases for ChangeDetector.detect_moves."""

    def test_renamed_page_moves(self, nodes):
        detector = detector_for(nodes)
        records = {
            "a": SyncRecord("a", "Projects/Old name.md", "r1"),
            "b": SyncRecord("b", "Projects/Beta.md", "r1"),
        }

        moves = detector.detect_moves(records, set())

        assert moves == [MoveInfo("a", "Alpha", "Projects/Old name.md", "Projects/Alpha.md")]

    def test_stale_records_are_not_moved(self, nodes):
        detector = detector_for(nodes)
        records = {"gone": SyncRecord("gone", "Projects/Gone.md", "r1")}

        assert detector.detect_moves(records, {"gone"}) == []

    def test_root_prefix_change_moves_everything(self, nodes):
        detector = detector_for(nodes, SyncConfig(root_folder_path="Notion"))
        records = {"a": SyncRecord("a", "Projects/Alpha.md", "r1")}

        moves = detector.detect_moves(records, set())

        assert moves[0].new_path == "Notion/Projects/Alpha.md"


class TestPlanWrites:
    """Test cases for ChangeDetector.plan_writes."""

    def test_new_changed_missing_unchanged(self, nodes):
        nodes[1] = page("a", "Alpha", parent_id="root", revision="r2")
        detector = detector_for(nodes)
        records = {
            "a": SyncRecord("a", "Projects/Alpha.md", "r1"),
            "b": SyncRecord("b", "Projects/Beta.md", "r1"),
            "a1": SyncRecord("a1", "Projects/Alpha/Alpha child.md", "r1"),
        }

        writes, unchanged, collisions = detector.plan_writes(records, exists("Projects/Alpha/Alpha child.md"))

        assert {(w.page_id, w.reason) for w in writes} == {("a", "changed"), ("b", "missing")}
        assert unchanged == ["a1"]
        assert collisions == []

    def test_roots_and_containers_are_not_written(self):
        nodes = [page("root", "Projects"), Node("db", "Tasks", NodeKind.CONTAINER, "root", "r1")]
        writes, unchanged, _ = detector_for(nodes).plan_writes({}, exists())

        assert writes == []
        assert unchanged == []

    def test_dangling_node_written_at_truncated_path(self):
        nodes = [page("root", "Projects"), page("lost", "Lost", parent_id="nowhere")]

        writes, _, _ = detector_for(nodes).plan_writes({}, exists())

        assert [(w.page_id, w.local_path, w.reason) for w in writes] == [("lost", "Lost.md", "new")]

    def test_collision_first_visited_wins(self):
        nodes = [page("root", "Projects"), page("x", "Same", "root"), page("y", "Same", "root")]

        writes, _, collisions = detector_for(nodes).plan_writes({}, exists())

        assert [w.page_id for w in writes] == ["x"]
        assert len(collisions) == 1
        assert collisions[0].local_path == "Projects/Same.md"
        assert collisions[0].winner_id == "x"
        assert collisions[0].loser_ids == ["y"]

    def test_collision_recorded_owner_wins(self):
        """The page already recorded at a path keeps it, even if visited later."""
        nodes = [page("root", "Projects"), page("x", "Same", "root"), page("y", "Same", "root")]
        records = {"y": SyncRecord("y", "Projects/Same.md", "r1")}

        writes, unchanged, collisions = detector_for(nodes).plan_writes(records, exists("Projects/Same.md"))

        assert writes == []
        assert unchanged == ["y"]
        assert collisions[0].winner_id == "y"
        assert collisions[0].loser_ids == ["x"]

    def test_recorded_owner_that_moved_away_loses_claim(self):
        nodes = [page("root", "Projects"), page("x", "Same", "root"), page("y", "Renamed", "root")]
        records = {"y": SyncRecord("y", "Projects/Same.md", "r1")}

        writes, _, collisions = detector_for(nodes).plan_writes(records, exists("Projects/Same.md"))

        assert {w.page_id for w in writes} == {"x"}
        assert collisions == []

    def test_pending_moves_applied_to_owners(self):
        nodes = [page("root", "Projects"), page("x", "Same", "root"), page("y", "Same", "root")]
        records = {"y": SyncRecord("y", "Projects/Old.md", "r1")}
        moves = [MoveInfo("y", "Same", "Projects/Old.md", "Projects/Same.md")]

        _, _, collisions = detector_for(nodes).plan_writes(records, exists(), moves)

        assert collisions[0].winner_id == "y"


class TestWalk:
    """Test cases for ChangeDetector.walk."""

    def test_depth_first_pre_order_then_dangling(self, nodes):
        nodes = [page("lost", "Lost", parent_id="nowhere")] + nodes

        order = [node.node_id for node in detector_for(nodes).walk()]

        assert order == ["root", "a", "a1", "b", "lost"]
