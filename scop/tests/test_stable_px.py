#!/usr/bin/env python3
"""
Tests for stable px (domain sunid) assignment
"""
import logging

import pytest

from scop.exceptions import CorruptionError, DatabaseError, ReleaseError
from scop.models.classification import ChangeType, ClassificationNode, Level
from scop.models.report import AnomalyKind
from scop.pipelines.stable_ids.partition import Partition, SunidCounter
from scop.pipelines.stable_ids.px import (
    PHASE_CHANGED, PHASE_EXACT, PHASE_HISTORY, PHASE_NEW, StablePXReconciler, order_new_leaves
)


def add_leaf(store, node_id, release_id, sid, sunid=0, description=None):
    return store.add_node(node_id, release_id, Level.DOMAIN, parent_id=None, sid=sid,
                          sunid=sunid, description=description or f"{sid[1:5]} A:")


@pytest.fixture
def px_store(release_pair):
    """Old release 1 with three domains; new release 2 with four"""
    s = release_pair
    s.add_node(1, 1, Level.ROOT, sunid=0)
    s.add_node(2, 1, Level.CLASS, parent_id=1, sunid=20, description="All alpha")
    add_leaf(s, 10, 1, "d1abca_", 500)
    add_leaf(s, 11, 1, "d1xyza_", 501)
    add_leaf(s, 12, 1, "d2fooa_", 502)

    add_leaf(s, 110, 2, "d1abca_")
    add_leaf(s, 111, 2, "d1xyzb_")
    add_leaf(s, 112, 2, "d2fooa1")
    add_leaf(s, 113, 2, "d3newa_")
    s.add_history(11, 111, 2, ChangeType.RENAME)
    return s


class TestStablePXPhases:
    """Assignment phases on a small release pair"""

    def test_assignments(self, px_store):
        result = StablePXReconciler(px_store, "2.01", "2.02").run()

        assert not result.check_only
        assert result.assignments == {110: 500, 111: 501, 112: 503, 113: 504}
        assert result.next_sunid == 505
        assert result.stats[PHASE_EXACT] == 1
        assert result.stats[PHASE_HISTORY] == 1
        assert result.stats[PHASE_CHANGED] == 1
        assert result.stats[PHASE_NEW] == 1

    def test_writes_sunids_and_counter(self, px_store):
        StablePXReconciler(px_store, 1, 2).run()

        assert px_store.nodes[110].sunid == 500
        assert px_store.nodes[113].sunid == 504
        assert px_store.next_sunid == 505
        assert px_store.writes[-1] == ("next_sunid", 505)

    def test_unchanged_domain_mints_nothing(self, release_pair):
        add_leaf(release_pair, 10, 1, "d1abca_", 500)
        add_leaf(release_pair, 110, 2, "d1abca_")

        result = StablePXReconciler(release_pair, 1, 2).run()

        assert result.assignments == {110: 500}
        assert result.next_sunid == 501
        assert release_pair.nodes[110].sunid == 500

    def test_minted_sunids_exceed_every_old_sunid(self, px_store):
        px_store.nodes[1].sunid = 9000

        result = StablePXReconciler(px_store, 1, 2).run()

        assert result.assignments[112] == 9001
        assert result.assignments[113] == 9002
        old_max = max(n.sunid for n in px_store.nodes.values() if n.release_id == 1)
        minted = [s for s in result.assignments.values() if s not in (500, 501)]
        assert all(s > old_max for s in minted)

    def test_split_target_is_minted_in_changed_phase(self, px_store):
        add_leaf(px_store, 114, 2, "d9zzza_")
        px_store.add_history(12, 114, 2, ChangeType.SPLIT)

        reconciler = StablePXReconciler(px_store, 1, 2)
        result = reconciler.run()

        # 112 and 114 in phase 3 (id order), 113 in phase 4
        assert result.assignments[112] == 503
        assert result.assignments[114] == 504
        assert result.assignments[113] == 505
        assert result.stats[PHASE_CHANGED] == 2

    def test_history_to_assigned_node_is_ignored(self, px_store, caplog):
        px_store.add_history(12, 110, 2, ChangeType.IDENTICAL)

        with caplog.at_level(logging.WARNING):
            result = StablePXReconciler(px_store, 1, 2).run()

        assert result.assignments[110] == 500
        assert "already has sunid 500" in caplog.text

    def test_history_from_unknown_old_domain(self, px_store):
        px_store.add_history(999, 113, 2, ChangeType.RENAME)

        with pytest.raises(CorruptionError):
            StablePXReconciler(px_store, 1, 2).run()
        assert px_store.writes == []

    def test_duplicate_sids_fail_before_writing(self, px_store):
        add_leaf(px_store, 115, 2, "d1abca_")

        with pytest.raises(CorruptionError, match="used twice"):
            StablePXReconciler(px_store, 1, 2).run()
        assert px_store.writes == []

    def test_leaf_without_sid(self, px_store):
        px_store.nodes[113].sid = None

        with pytest.raises(CorruptionError):
            StablePXReconciler(px_store, 1, 2).run()


class TestStablePXModes:
    """Check-only selection and idempotence"""

    def test_check_only_after_write_is_clean(self, px_store):
        written = StablePXReconciler(px_store, 1, 2).run()
        n_writes = len(px_store.writes)

        checked = StablePXReconciler(px_store, 1, 2, check_only=True).run()

        assert checked.check_only
        assert checked.assignments == written.assignments
        assert checked.anomalies == []
        assert len(px_store.writes) == n_writes

    def test_check_only_reports_mismatches(self, px_store):
        px_store.nodes[110].sunid = 777

        result = StablePXReconciler(px_store, 1, 2, check_only=True).run()

        mismatches = result.by_kind(AnomalyKind.SUNID_MISMATCH)
        assert {a.node_id for a in mismatches} == {110, 111, 112, 113}
        assert px_store.writes == []

    def test_public_release_runs_check_only(self, px_store):
        result = StablePXReconciler(px_store, 1, 1).run()

        assert result.check_only
        assert result.anomalies == []
        assert px_store.writes == []

    def test_failed_write_leaves_release_untouched(self, px_store):
        px_store.fail_writes = True

        with pytest.raises(DatabaseError):
            StablePXReconciler(px_store, 1, 2).run()

        assert px_store.writes == []
        assert all(px_store.nodes[i].sunid == 0 for i in (110, 111, 112, 113))
        assert px_store.next_sunid == 0

    def test_forced_write_on_public_release(self, px_store):
        with pytest.raises(ReleaseError):
            StablePXReconciler(px_store, 1, 1, check_only=False)

    def test_release_that_is_not_latest(self, px_store):
        px_store.add_release(3, "2.03")

        assert StablePXReconciler(px_store, 1, 2).check_only
        with pytest.raises(ReleaseError):
            StablePXReconciler(px_store, 1, 2, check_only=False)

    def test_unknown_release(self, px_store):
        with pytest.raises(ReleaseError, match="Can't determine SCOP version"):
            StablePXReconciler(px_store, "1.55", "2.02")


class TestOrdering:

    def _leaves(self):
        return [ClassificationNode(id=3, release_id=1, level_id=8, parent_id=None, sid="d1aaaa_"),
                ClassificationNode(id=1, release_id=1, level_id=8, parent_id=None, sid="d2bbba_"),
                ClassificationNode(id=2, release_id=1, level_id=8, parent_id=None, sid="d1aaaa_")]

    def test_early_releases_order_by_id(self):
        assert [n.id for n in order_new_leaves(self._leaves(), 4)] == [1, 2, 3]

    def test_later_releases_order_by_sid(self):
        assert [n.id for n in order_new_leaves(self._leaves(), 5)] == [2, 3, 1]


class TestPartition:

    def test_assign_and_owner(self):
        partition = Partition([1, 2, 3])
        partition.assign(2, 50, "exact")

        assert partition.pending() == [1, 3]
        assert partition.owner(50) == 2
        assert partition.count("exact") == 1

    def test_assign_twice(self):
        partition = Partition([1, 2])
        partition.assign(1, 50, "exact")
        with pytest.raises(ValueError):
            partition.assign(1, 51, "new")

    def test_duplicate_value(self):
        partition = Partition([1, 2], preassigned={9: 50})
        with pytest.raises(CorruptionError):
            partition.assign(1, 50, "new")

    def test_counter(self):
        counter = SunidCounter(10)
        assert [counter.mint(), counter.mint()] == [10, 11]
        assert counter.value == 12
        assert counter.minted == 2
