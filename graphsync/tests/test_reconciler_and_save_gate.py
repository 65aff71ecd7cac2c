"""Tests for identity reconciliation after a save and the no-op save gate."""

from graphsync.models.execution import ExecutionRecord, ExecutionStatus
from graphsync.models.graph import BackendNode, Graph, NodeMetadata, Position
from graphsync.sdk.conversion import load_from_backend, node_from_block, to_backend_payload
from graphsync.sdk.reconciler import IdentityReconciler, correlation_key, is_synced
from graphsync.sdk.save_gate import needs_save
from graphsync.tests.conftest import BLOCKS, HTTP_BLOCK, TEXT_BLOCK, make_event


def _saved(*nodes: tuple[str, str, float, float], graph_id: str = "graph-1") -> Graph:
    return Graph(
        id=graph_id,
        nodes=[
            BackendNode(
                id=node_id,
                block_id=block_id,
                metadata=NodeMetadata(position=Position(x=x, y=y)),
            )
            for node_id, block_id, x, y in nodes
        ],
    )


class TestCorrelationKey:
    def test_int_and_float_positions_match(self):
        assert correlation_key("blk", 10, 20) == correlation_key("blk", 10.0, 20.0)


class TestIdentityReconciler:
    def test_assigns_backend_ids_by_block_and_position(self):
        text = node_from_block(TEXT_BLOCK, "local-text", Position(x=0, y=0))
        http = node_from_block(HTTP_BLOCK, "local-http", Position(x=300, y=40))
        reconciler = IdentityReconciler([text, http])

        saved = _saved(("n2", "blk-http", 300, 40), ("n1", "blk-text", 0, 0))
        nodes = reconciler.apply(saved, [text, http])

        assert [node.id for node in nodes] == ["local-http", "local-text"]
        assert http.backend_id == "n2"
        assert text.backend_id == "n1"

    def test_same_position_different_block(self):
        text = node_from_block(TEXT_BLOCK, "local-text", Position(x=5, y=5))
        http = node_from_block(HTTP_BLOCK, "local-http", Position(x=5, y=5))
        reconciler = IdentityReconciler([text, http])

        assert reconciler.local_id_for("blk-text", 5, 5) == "local-text"
        assert reconciler.local_id_for("blk-http", 5, 5) == "local-http"

    def test_clears_execution_state_and_cleans_values(self):
        http = node_from_block(
            HTTP_BLOCK, "local-http", Position(x=1, y=2),
            hardcoded_values={"url": "https://x.io", "method": ""},
        )
        http.status = ExecutionStatus.COMPLETED
        http.execution_results = {
            "ne-1": ExecutionRecord.from_event(make_event("old", "ne-1", "COMPLETED"))
        }
        reconciler = IdentityReconciler([http])

        reconciler.apply(_saved(("n1", "blk-http", 1, 2)), [http])
        assert http.status is None
        assert http.execution_results == {}
        assert http.hardcoded_values == {"url": "https://x.io"}

    def test_unmatched_local_node_dropped(self):
        text = node_from_block(TEXT_BLOCK, "local-text", Position(x=0, y=0))
        moved = node_from_block(HTTP_BLOCK, "local-http", Position(x=9, y=9))
        reconciler = IdentityReconciler([text, moved])

        nodes = reconciler.apply(_saved(("n1", "blk-text", 0, 0)), [text, moved])
        assert [node.id for node in nodes] == ["local-text"]

    def test_ambiguous_placement_last_wins(self):
        first = node_from_block(TEXT_BLOCK, "first", Position(x=0, y=0))
        second = node_from_block(TEXT_BLOCK, "second", Position(x=0, y=0))
        reconciler = IdentityReconciler([first, second])
        assert reconciler.local_id_for("blk-text", 0, 0) == "second"


class TestIsSynced:
    def test_never_saved(self):
        node = node_from_block(TEXT_BLOCK, "t")
        assert not is_synced([node], None)

    def test_any_match_is_enough(self):
        a = node_from_block(TEXT_BLOCK, "a")
        b = node_from_block(HTTP_BLOCK, "b")
        a.backend_id = "n1"
        assert is_synced([a, b], _saved(("n1", "blk-text", 0, 0)))

    def test_stale_ids(self):
        a = node_from_block(TEXT_BLOCK, "a")
        a.backend_id = "old"
        assert not is_synced([a], _saved(("n1", "blk-text", 0, 0)))

    def test_empty_graph(self):
        assert not is_synced([], _saved())


class TestSaveGate:
    def _saved_graph(self) -> Graph:
        return Graph(
            id="graph-1",
            version=2,
            name="Scraper",
            description="fetches pages",
            nodes=[
                BackendNode(
                    id="n1", block_id="blk-text",
                    input_default={"format": "https://{site}"},
                    metadata=NodeMetadata(position=Position(x=0, y=0)),
                ),
                BackendNode(
                    id="n2", block_id="blk-http",
                    input_default={"method": "POST"},
                    metadata=NodeMetadata(position=Position(x=300, y=0)),
                ),
            ],
            links=[
                {"id": "l1", "source_id": "n1", "sink_id": "n2",
                 "source_name": "output", "sink_name": "url"},
            ],
        )

    def _resubmit(self, graph: Graph, edit=None):
        nodes, edges = load_from_backend(graph, BLOCKS)
        if edit is not None:
            edit(nodes)
        return to_backend_payload(
            nodes, edges, name=graph.name, description=graph.description, graph_id=graph.id
        )

    def test_never_saved_needs_save(self):
        payload = self._resubmit(self._saved_graph())
        assert needs_save(payload, None)

    def test_unchanged_reload_skips_save(self):
        graph = self._saved_graph()
        assert not needs_save(self._resubmit(graph), graph)

    def test_hardcoded_value_change_needs_save(self):
        graph = self._saved_graph()

        def edit(nodes):
            nodes[1].hardcoded_values["method"] = "GET"

        assert needs_save(self._resubmit(graph, edit), graph)

    def test_move_needs_save(self):
        graph = self._saved_graph()

        def edit(nodes):
            nodes[0].position = Position(x=10, y=0)

        assert needs_save(self._resubmit(graph, edit), graph)

    def test_rename_needs_save(self):
        graph = self._saved_graph()
        payload = self._resubmit(graph).model_copy(update={"name": "Crawler"})
        assert needs_save(payload, graph)

    def test_ignores_identifiers_and_extra_metadata(self):
        graph = self._saved_graph()
        payload = self._resubmit(graph)

        regenerated = graph.model_copy(deep=True)
        for i, node in enumerate(regenerated.nodes):
            node.id = f"fresh-{i}"
            node.metadata = NodeMetadata(position=node.metadata.position, collapsed=True)
        regenerated.links[0].id = "fresh-link"

        assert not needs_save(payload, regenerated)
