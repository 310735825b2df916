#!/usr/bin/env python3
"""
Tests for running px, sunid and sccs assignment in sequence
"""
import pytest

from scop.exceptions import ReleaseError
from scop.models.classification import Level
from scop.pipelines.stable_ids import reconcile_release

LINEAGE = [
    (Level.CLASS, "All alpha proteins", 10, "a"),
    (Level.FOLD, "Globin-like", 11, "a.1"),
    (Level.SUPERFAMILY, "Globin-like", 12, "a.1.1"),
    (Level.FAMILY, "Globins", 13, "a.1.1.1"),
    (Level.PROTEIN, "Hemoglobin", 14, "a.1.1.1"),
    (Level.SPECIES, "Human", 15, "a.1.1.1"),
]


@pytest.fixture
def pipeline_store(release_pair):
    s = release_pair
    for release_id, root_id, stored in ((1, 1, True), (2, 21, False)):
        s.add_node(root_id, release_id, Level.ROOT)
        parent = root_id
        for i, (level, description, sunid, sccs) in enumerate(LINEAGE):
            s.add_node(root_id + i + 1, release_id, level, parent_id=parent,
                       description=description,
                       sunid=sunid if stored else 0, sccs=sccs if stored else "")
            parent = root_id + i + 1
    s.add_node(8, 1, Level.DOMAIN, parent_id=7, sid="d1abca_", description="1abc A:",
               sunid=100, sccs="a.1.1.1")
    s.add_node(28, 2, Level.DOMAIN, parent_id=27, sid="d1abca_", description="1abc A:")
    s.add_node(29, 2, Level.DOMAIN, parent_id=27, sid="d2defa_", description="2def A:")
    return s


class TestReconcileRelease:

    def test_all_steps_write(self, pipeline_store):
        results = reconcile_release(pipeline_store, "2.01", "2.02")

        assert [r.name for r in results] == ["px", "sunid", "sccs"]
        nodes = pipeline_store.nodes
        assert (nodes[28].sunid, nodes[29].sunid) == (100, 101)
        assert [nodes[i].sunid for i in range(22, 28)] == [10, 11, 12, 13, 14, 15]
        assert nodes[25].sccs == "a.1.1.1"
        assert nodes[29].sccs == "a.1.1.1"
        assert pipeline_store.next_sunid == 102

    def test_second_pass_is_clean(self, pipeline_store):
        reconcile_release(pipeline_store, 1, 2)

        results = reconcile_release(pipeline_store, 1, 2, check_only=True)

        assert all(r.check_only for r in results)
        assert all(r.anomalies == [] for r in results)

    def test_subset_of_steps(self, pipeline_store):
        results = reconcile_release(pipeline_store, 1, 2, steps=("px",))

        assert len(results) == 1
        assert pipeline_store.nodes[22].sunid == 0

    def test_frozen_release_fails_before_any_write(self, pipeline_store):
        pipeline_store.releases[2].is_public = True

        with pytest.raises(ReleaseError):
            reconcile_release(pipeline_store, 1, 2, check_only=False)
        assert pipeline_store.writes == []

    def test_non_consecutive_fails_before_px_writes(self, pipeline_store):
        pipeline_store.add_release(3, "2.03")
        pipeline_store.add_node(31, 3, Level.DOMAIN, sid="d1abca_", description="1abc A:")

        with pytest.raises(ReleaseError, match="consecutive"):
            reconcile_release(pipeline_store, 1, 3)
        assert pipeline_store.writes == []
