#!/usr/bin/env python3
"""
Stable px (domain sunid) assignment

Leaf nodes of a new release get their sunids from the previous release in
four phases, each working on what the previous phases left pending:

1. an identical sid keeps its old sunid;
2. a RENAME or IDENTICAL history event carries the old node's sunid over;
3. targets of any other leaf history event, and domains of PDB entries that
   were already classified, get a freshly minted sunid;
4. everything else (new PDB entries) gets a freshly minted sunid.

Minting starts one past the largest sunid of the previous release. Sids
must already be assigned in the new release.
"""
from typing import Dict, Iterable, List, Set

from scop.exceptions import CorruptionError
from scop.models.classification import ClassificationNode, HistoryEvent, Level
from scop.models.report import Anomaly, ReconcileResult

from .base import StableIdReconciler
from .partition import Partition, SunidCounter

PHASE_EXACT = "exact"
PHASE_HISTORY = "history"
PHASE_CHANGED = "changed"
PHASE_NEW = "new"


def order_new_leaves(leaves: List[ClassificationNode], release_id: int,
                     sid_order_release: int = 5) -> List[ClassificationNode]:
    """Processing order of new leaves: by node id for early releases, by sid after"""
    if release_id < sid_order_release:
        return sorted(leaves, key=lambda n: n.id)
    return sorted(leaves, key=lambda n: (n.sid, n.id))


def match_exact(partition: Partition, leaves: Dict[int, ClassificationNode],
                old_sid_to_sunid: Dict[str, int]) -> int:
    """Phase 1: identical sids inherit the old sunid"""
    matched = 0
    for node_id in partition.pending():
        sunid = old_sid_to_sunid.get(leaves[node_id].sid)
        if sunid is not None:
            partition.assign(node_id, sunid, PHASE_EXACT)
            matched += 1
    return matched


def match_history(partition: Partition, leaves: Dict[int, ClassificationNode],
                  events: Iterable[HistoryEvent], old_id_to_sunid: Dict[int, int],
                  logger=None) -> int:
    """Phase 2: RENAME/IDENTICAL events carry the old sunid to the new node

    Raises:
        CorruptionError: If an event ends on a new leaf but its old node is
            not a leaf of the previous release
    """
    matched = 0
    for event in events:
        if not event.change_type.preserves_identity or event.new_node_id not in leaves:
            continue
        sunid = old_id_to_sunid.get(event.old_node_id)
        if sunid is None:
            raise CorruptionError(f"History event {event.change_type.name} for node "
                                  f"{event.new_node_id} refers to unknown old domain "
                                  f"{event.old_node_id}",
                                  {"old_node_id": event.old_node_id,
                                   "new_node_id": event.new_node_id})
        if not partition.is_pending(event.new_node_id):
            current = partition.assigned.get(event.new_node_id)
            if current != sunid and logger:
                logger.warning(f"Node {event.new_node_id} already has sunid {current}; "
                               f"ignoring {event.change_type.name} from sunid {sunid}")
            continue
        partition.assign(event.new_node_id, sunid, PHASE_HISTORY)
        matched += 1
    return matched


def mint_changed(partition: Partition, leaves: Dict[int, ClassificationNode],
                 counter: SunidCounter, changed_ids: Set[int],
                 old_pdb_codes: Set[str]) -> int:
    """Phase 3: merged/split/modified domains and domains of known PDB entries"""
    minted = 0
    for node_id in partition.pending():
        pdb_code = leaves[node_id].sid[1:5]
        if node_id in changed_ids or pdb_code in old_pdb_codes:
            partition.assign(node_id, counter.mint(), PHASE_CHANGED)
            minted += 1
    return minted


def mint_remaining(partition: Partition, counter: SunidCounter) -> int:
    """Phase 4: brand new domains"""
    pending = partition.pending()
    for node_id in pending:
        partition.assign(node_id, counter.mint(), PHASE_NEW)
    return len(pending)


class StablePXReconciler(StableIdReconciler):
    """Assigns stable sunids to the leaf (px) level of a release"""

    name = "px"

    def run(self) -> ReconcileResult:
        """Compute leaf sunids, then write them or compare with stored values

        Raises:
            CorruptionError: On unresolvable history or duplicate sunids;
                raised before anything is written
        """
        result = self._new_result()
        old_id, new_id = self.old_release.id, self.new_release.id

        old_nodes = self.store.get_classification_tree(old_id)
        old_leaves = [n for n in old_nodes if n.level_id == Level.DOMAIN]
        old_sid_to_sunid = {n.sid: n.sunid for n in old_leaves if n.sunid}
        old_id_to_sunid = {n.id: n.sunid for n in old_leaves if n.sunid}
        old_pdb_codes = {n.description[:4] for n in old_leaves}
        self.logger.info(f"{len(old_leaves)} domains in old release {self.old_release}")

        counter = SunidCounter(max((n.sunid for n in old_nodes), default=0) + 1)
        self.logger.info(f"Minting from {counter.value} (stored next_sunid={self.store.get_next_sunid()})")

        new_leaves = [n for n in self.store.get_classification_tree(new_id)
                      if n.level_id == Level.DOMAIN]
        for node in new_leaves:
            if not node.sid:
                raise CorruptionError(f"Domain node {node.id} has no sid; assign sids first",
                                      {"node_id": node.id})
        sid_order_release = self.config.get('reconcile', {}).get('sid_order_release', 5)
        ordered = order_new_leaves(new_leaves, new_id, sid_order_release)
        leaves = {n.id: n for n in ordered}
        self.logger.info(f"{len(leaves)} domains in new release {self.new_release}")

        events = self.store.get_history(new_id)
        changed_ids = {e.new_node_id for e in events
                       if not e.change_type.preserves_identity and e.new_node_id in leaves}

        partition = Partition(leaves.keys())

        stats = result.stats
        stats[PHASE_EXACT] = match_exact(partition, leaves, old_sid_to_sunid)
        self.logger.info(f"{len(partition.assigned)} domains matched exactly, next_sunid={counter.value}")

        stats[PHASE_HISTORY] = match_history(partition, leaves, events, old_id_to_sunid, self.logger)
        self.logger.info(f"{len(partition.assigned)} domains matched after assigning unchanged sid")

        stats[PHASE_CHANGED] = mint_changed(partition, leaves, counter, changed_ids, old_pdb_codes)
        self.logger.info(f"{len(partition.assigned)} domains matched after assigning "
                         f"merged/split/modified/old PDB, next_sunid={counter.value}")

        stats[PHASE_NEW] = mint_remaining(partition, counter)
        self.logger.info(f"{len(partition.assigned)} domains matched after assigning new PDB, "
                         f"next_sunid={counter.value}")

        result.assignments = dict(partition.assigned)
        result.next_sunid = counter.value
        self._commit(result, leaves)
        return result

    def _commit(self, result: ReconcileResult, leaves: Dict[int, ClassificationNode]) -> None:
        if self.check_only:
            for node_id, sunid in result.assignments.items():
                stored = leaves[node_id].sunid
                if sunid != stored:
                    anomaly = Anomaly.sunid_mismatch(node_id, sunid, stored)
                    self.logger.warning(str(anomaly))
                    result.anomalies.append(anomaly)
            self.logger.info(f"Checked {len(result.assignments)} domain sunids: "
                             f"{len(result.anomalies)} mismatches")
            return

        self.store.write_sunids(result.assignments, result.next_sunid)
        self.logger.info(f"Wrote {len(result.assignments)} domain sunids to release {self.new_release}")
