#!/usr/bin/env python3
"""
Stable sunid assignment for interior levels (class .. species)

Runs after the px reconciler. Level by level, top down:

1. targets of SPLIT and MOVE history events get new sunids;
2. an old node passes its sunid to the new child with the same description
   under the new node that carries the old parent's sunid;
3. sunids already stored on pending nodes are kept if they were in use by
   the previous release;
4. everything else gets a new sunid.

Minting continues after the largest leaf sunid of the new release.
"""
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from scop.exceptions import ReleaseError
from scop.models.classification import ChangeType, ClassificationNode, Level
from scop.models.report import Anomaly, ReconcileResult

from .base import StableIdReconciler
from .partition import Partition, SunidCounter

PHASE_SPLIT_MOVE = "split_move"
PHASE_SAME_PARENT = "same_parent"
PHASE_STORED = "stored"
PHASE_NEW = "new"

INTERIOR_LEVELS = range(Level.CLASS, Level.DOMAIN)


class StableSunidReconciler(StableIdReconciler):
    """Assigns stable sunids to levels 2-7 of a release"""

    name = "sunid"
    requires_consecutive = True

    def run(self) -> ReconcileResult:
        """Compute interior sunids, then write them or compare with stored values

        Raises:
            ReleaseError: If leaf sunids have not been assigned yet
            CorruptionError: If a sunid would be used twice
        """
        result = self._new_result()

        old_nodes = self.store.get_classification_tree(self.old_release.id)
        new_nodes = self.store.get_classification_tree(self.new_release.id)
        old_by_id = {n.id: n for n in old_nodes}
        new_by_id = {n.id: n for n in new_nodes}
        max_old_sunid = max((n.sunid for n in old_nodes), default=0)
        self.logger.info(f"{len(old_nodes)} nodes in old release, {len(new_nodes)} in new release")

        leaf_sunids = {n.id: n.sunid for n in new_nodes if n.level_id == Level.DOMAIN and n.sunid > 0}
        next_sunid = max(leaf_sunids.values(), default=0) + 1
        if next_sunid <= 1:
            raise ReleaseError(f"Must assign stable px for {self.new_release} first")
        counter = SunidCounter(next_sunid)
        self.logger.info(f"{len(leaf_sunids)} px assigned, next_sunid={counter.value}")

        pending = [n.id for n in sorted(new_nodes, key=lambda n: (n.level_id, n.id))
                   if n.level_id in INTERIOR_LEVELS]
        partition = Partition(pending, preassigned=leaf_sunids)

        new_root = self._root_id(new_nodes)
        children_by_desc: Dict[Tuple[int, str], List[int]] = defaultdict(list)
        for node in new_nodes:
            if node.parent_id is not None:
                children_by_desc[(node.parent_id, node.description)].append(node.id)

        events = self.store.get_history(self.new_release.id)

        for level in INTERIOR_LEVELS:
            level_ids = [i for i in partition.pending() if new_by_id[i].level_id == level]

            split_move = 0
            for event in events:
                if (event.change_type in (ChangeType.SPLIT, ChangeType.MOVE)
                        and event.new_node_id in new_by_id
                        and new_by_id[event.new_node_id].level_id == level
                        and partition.is_pending(event.new_node_id)):
                    partition.assign(event.new_node_id, counter.mint(), PHASE_SPLIT_MOVE)
                    split_move += 1
            self.logger.info(f"Level {level}: {split_move} split/moved, next_sunid={counter.value}")

            same_parent = 0
            old_level = sorted((n for n in old_nodes if n.level_id == level and n.sunid > 0),
                               key=lambda n: n.id)
            for old in old_level:
                new_parent = self._new_parent(old, old_by_id, partition, new_root)
                if new_parent is None:
                    continue
                candidates = children_by_desc.get((new_parent, old.description), [])
                if len(candidates) != 1:
                    if len(candidates) > 1:
                        self.logger.debug(f"Ambiguous description '{old.description}' "
                                          f"under node {new_parent}")
                    continue
                new_id = candidates[0]
                if not partition.is_pending(new_id):
                    continue
                partition.assign(new_id, old.sunid, PHASE_SAME_PARENT)
                same_parent += 1

            stored = 0
            for node_id in level_ids:
                sunid = new_by_id[node_id].sunid
                if partition.is_pending(node_id) and 0 < sunid <= max_old_sunid:
                    partition.assign(node_id, sunid, PHASE_STORED)
                    stored += 1

            minted = 0
            for node_id in level_ids:
                if partition.is_pending(node_id):
                    partition.assign(node_id, counter.mint(), PHASE_NEW)
                    minted += 1

            self.logger.info(f"Level {level}: {same_parent} kept under same parent, "
                             f"{stored} previously assigned, {minted} new, next_sunid={counter.value}")
            result.stats[f"level_{level}"] = len(level_ids)

        for phase in (PHASE_SPLIT_MOVE, PHASE_SAME_PARENT, PHASE_STORED, PHASE_NEW):
            result.stats[phase] = partition.count(phase)

        result.assignments = {node_id: sunid for node_id, sunid in partition.assigned.items()
                               if node_id not in leaf_sunids}
        result.next_sunid = counter.value
        self._commit(result, new_by_id)
        return result

    @staticmethod
    def _root_id(nodes: List[ClassificationNode]) -> Optional[int]:
        roots = [n.id for n in nodes if n.level_id == Level.ROOT]
        return roots[0] if roots else None

    @staticmethod
    def _new_parent(old: ClassificationNode, old_by_id: Dict[int, ClassificationNode],
                    partition: Partition, new_root: Optional[int]) -> Optional[int]:
        """New-release node carrying the sunid of old's parent"""
        old_parent = old_by_id.get(old.parent_id)
        if old_parent is None:
            return None
        if old_parent.level_id == Level.ROOT:
            return new_root
        if old_parent.sunid <= 0:
            return None
        return partition.owner(old_parent.sunid)

    def _commit(self, result: ReconcileResult, new_by_id: Dict[int, ClassificationNode]) -> None:
        if self.check_only:
            for node_id, sunid in result.assignments.items():
                stored = new_by_id[node_id].sunid
                if sunid != stored:
                    anomaly = Anomaly.sunid_mismatch(node_id, sunid, stored)
                    self.logger.warning(str(anomaly))
                    result.anomalies.append(anomaly)
            self.logger.info(f"Checked {len(result.assignments)} interior sunids: "
                             f"{len(result.anomalies)} mismatches")
            return

        self.store.write_sunids(result.assignments, result.next_sunid)
        self.logger.info(f"Wrote {len(result.assignments)} interior sunids to release {self.new_release}")
