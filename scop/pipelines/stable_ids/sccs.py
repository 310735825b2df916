#!/usr/bin/env python3
"""
Stable sccs assignment

Walks the new tree top down (class .. domain). A node whose sunid existed in
the previous release keeps that release's sccs. A new node takes its
parent's code at the protein level and below; at fold, superfamily and
family level it gets the parent code plus the next unused suffix. A node
whose inherited code no longer sits under its parent's code was moved: a
MOVE history event is recorded and the code is recomputed. Its descendants
follow it without events of their own.
"""
import re
from typing import Dict, Iterable, List, Optional, Set

from scop.exceptions import CorruptionError
from scop.models.classification import ChangeType, ClassificationNode, HistoryEvent, Level
from scop.models.report import Anomaly, ReconcileResult

from .base import StableIdReconciler

ARTIFACTS_DESCRIPTION = "Artifacts"
ARTIFACTS_SCCS = "l"
AUTOMATED_MATCHES_DESCRIPTION = "automated matches"

SCCS_LEVELS = range(Level.CLASS, Level.DOMAIN + 1)
UNIQUE_SCCS_LEVELS = range(Level.CLASS, Level.FAMILY + 1)

_LEADING_DIGITS = re.compile(r"\d+")


def split_sccs(sccs: str):
    """Split "a.1.2" into ("a.1", "2"); None prefix if there is no dot"""
    pos = sccs.rfind(".")
    if pos == -1:
        return None, sccs
    return sccs[:pos], sccs[pos + 1:]


class SuffixTable:
    """Largest suffix ever used under each sccs prefix"""

    def __init__(self):
        self.max_suffix: Dict[str, int] = {}

    @classmethod
    def from_history(cls, codes: Iterable[str]) -> 'SuffixTable':
        table = cls()
        for sccs in codes:
            prefix, suffix = split_sccs(sccs)
            if prefix is None:
                continue
            match = _LEADING_DIGITS.match(suffix)
            value = int(match.group()) if match else 0
            if value > table.max_suffix.get(prefix, -1):
                table.max_suffix[prefix] = value
        return table

    def next_suffix(self, prefix: str) -> int:
        """Reserve and return the next suffix under prefix"""
        suffix = self.max_suffix.get(prefix, 0) + 1
        self.max_suffix[prefix] = suffix
        return suffix

    def seed(self, prefix: str) -> None:
        """Start a fresh prefix at 0"""
        self.max_suffix[prefix] = 0


class StableSCCSReconciler(StableIdReconciler):
    """Assigns stable sccs codes to levels 2-8 of a release"""

    name = "sccs"
    requires_consecutive = True

    def run(self) -> ReconcileResult:
        """Compute sccs codes, then write them or compare with stored values

        Raises:
            CorruptionError: If a class-level node cannot be coded, a parent
                has no code, or a code at levels 2-5 is used twice
        """
        result = self._new_result()

        old_nodes = self.store.get_classification_tree(self.old_release.id)
        self.old_sccs = {n.sunid: n.sccs for n in old_nodes if n.sunid > 0 and n.sccs}
        self.old_id_by_sunid = {n.sunid: n.id for n in old_nodes if n.sunid > 0}
        self.suffixes = SuffixTable.from_history(self.store.get_historical_sccs(self.old_release.id))
        self.logger.info(f"{len(self.old_sccs)} nodes in old release {self.old_release}")

        new_nodes = self.store.get_classification_tree(self.new_release.id)
        self.new_by_id = {n.id: n for n in new_nodes}
        self.logger.info(f"{len(new_nodes)} nodes in new release {self.new_release}")

        events = self.store.get_history(self.new_release.id)
        self.moved: Set[int] = {e.new_node_id for e in events if e.change_type == ChangeType.MOVE}
        self.new_events: List[HistoryEvent] = []

        self.computed: Dict[int, str] = {}
        used: Set[str] = set()

        for level in SCCS_LEVELS:
            level_nodes = sorted((n for n in new_nodes if n.level_id == level), key=lambda n: n.id)
            inherited = 0
            for node in level_nodes:
                sccs = self.old_sccs.get(node.sunid) if node.sunid > 0 else None
                if sccs is not None:
                    inherited += 1

                if level == Level.CLASS:
                    if sccs is None and node.description == ARTIFACTS_DESCRIPTION:
                        sccs = ARTIFACTS_SCCS
                else:
                    sccs = self._place_under_parent(node, sccs, result)

                if sccs is None:
                    raise CorruptionError(f"SCCS must be assigned by this point; node is {node.id}",
                                          {"node_id": node.id, "description": node.description})

                if level in UNIQUE_SCCS_LEVELS:
                    if sccs in used:
                        raise CorruptionError(f"SCCS {sccs} used twice; node is {node.id}",
                                              {"node_id": node.id, "sccs": sccs})
                    used.add(sccs)
                self.computed[node.id] = sccs

            self.logger.info(f"Level {level}: {len(level_nodes)} nodes, {inherited} inherited")
            result.stats[f"level_{level}"] = len(level_nodes)

        result.stats["reclassified"] = len(result.anomalies)
        result.assignments = dict(self.computed)
        self._commit(result)
        return result

    def _parent_sccs(self, node: ClassificationNode) -> str:
        parent_sccs = self.computed.get(node.parent_id)
        if parent_sccs is None:
            parent = self.new_by_id.get(node.parent_id)
            if parent is not None and parent.sunid > 0:
                parent_sccs = self.old_sccs.get(parent.sunid)
        if parent_sccs is None:
            raise CorruptionError(f"Parent {node.parent_id} of node {node.id} has no sccs",
                                  {"node_id": node.id, "parent_id": node.parent_id})
        return parent_sccs

    def _old_parent_sccs(self, node: ClassificationNode) -> Optional[str]:
        """Code the node's parent had in the previous release, if it existed"""
        parent = self.new_by_id.get(node.parent_id)
        if parent is None or parent.sunid <= 0:
            return None
        return self.old_sccs.get(parent.sunid)

    def _derive(self, node: ClassificationNode, parent_sccs: str) -> str:
        """Code for a node with no usable inherited code"""
        if node.level_id > Level.FAMILY:
            return parent_sccs
        suffix = 0
        if node.description != AUTOMATED_MATCHES_DESCRIPTION:
            suffix = self.suffixes.next_suffix(parent_sccs)
        sccs = f"{parent_sccs}.{suffix}"
        if node.level_id < Level.FAMILY:
            self.suffixes.seed(sccs)
        return sccs

    def _place_under_parent(self, node: ClassificationNode, sccs: Optional[str],
                            result: ReconcileResult) -> str:
        parent_sccs = self._parent_sccs(node)
        if sccs is None:
            return self._derive(node, parent_sccs)

        if node.level_id > Level.FAMILY:
            expected_parent = sccs
        else:
            expected_parent, _ = split_sccs(sccs)
            if expected_parent is None:
                raise CorruptionError(f"strange sccs: {sccs} for node {node.id}",
                                      {"node_id": node.id, "sccs": sccs})

        if expected_parent == parent_sccs:
            return sccs

        # the node kept its place but an ancestor moved: follow it quietly
        if expected_parent == self._old_parent_sccs(node):
            return self._derive(node, parent_sccs)

        anomaly = Anomaly.reclassified(node.id, sccs, parent_sccs)
        self.logger.warning(str(anomaly))
        result.anomalies.append(anomaly)
        if node.id not in self.moved:
            self.new_events.append(HistoryEvent(old_node_id=self.old_id_by_sunid.get(node.sunid),
                                                new_node_id=node.id,
                                                release_id=self.new_release.id,
                                                change_type=ChangeType.MOVE))
            self.moved.add(node.id)
        return self._derive(node, parent_sccs)

    def _commit(self, result: ReconcileResult) -> None:
        if self.check_only:
            for node_id, sccs in result.assignments.items():
                stored = self.new_by_id[node_id].sccs
                if sccs != stored:
                    anomaly = Anomaly.sccs_mismatch(node_id, sccs, stored)
                    self.logger.warning(str(anomaly))
                    result.anomalies.append(anomaly)
            self.logger.info(f"Checked {len(result.assignments)} sccs codes")
            return

        self.store.write_sccs_codes(result.assignments, self.new_events)
        self.logger.info(f"Wrote {len(result.assignments)} sccs codes and "
                         f"{len(self.new_events)} MOVE events to release {self.new_release}")
