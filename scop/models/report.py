#!/usr/bin/env python3
"""
Diagnostic records produced by the coverage checker and the reconcilers.

Anomalies are data-integrity findings: they are collected and printed,
never raised.
"""
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union, TYPE_CHECKING

from scop.models.classification import Release

if TYPE_CHECKING:
    from scop.utils.coverage import CoverageBitmap


class Severity(Enum):
    WARNING = "warning"
    DEFECT = "defect"


class AnomalyKind(Enum):
    """Kinds of findings reported by the checks"""
    MISSING_RAF = "missing_raf"
    BAD_RAF = "bad_raf"
    UNKNOWN_CHAIN = "unknown_chain"
    UNKNOWN_RESIDUE = "unknown_residue"
    OVERLAPPING_DOMAINS = "overlapping_domains"
    INCOMPLETE_COVERAGE = "incomplete_coverage"
    LENGTH_DRIFT = "length_drift"
    SUNID_MISMATCH = "sunid_mismatch"
    SCCS_MISMATCH = "sccs_mismatch"
    RECLASSIFIED = "reclassified"


@dataclass(frozen=True)
class Anomaly:
    """A single diagnostic, printable as one line"""
    kind: AnomalyKind
    severity: Severity
    message: str
    chain: Optional[str] = None
    sid: Optional[str] = None
    description: Optional[str] = None
    value: Optional[Union[int, str]] = None
    node_id: Optional[int] = None

    def __str__(self) -> str:
        return f"{self.severity.value.upper()} {self.kind.value}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'severity': self.severity.value,
            'message': self.message,
            'chain': self.chain,
            'sid': self.sid,
            'description': self.description,
            'value': self.value,
            'node_id': self.node_id,
        }

    @classmethod
    def missing_raf(cls, chain: str, severity: Severity) -> 'Anomaly':
        return cls(AnomalyKind.MISSING_RAF, severity,
                   f"no RAF found for PDB chain {chain}", chain=chain)

    @classmethod
    def bad_raf(cls, chain: str, reason: str) -> 'Anomaly':
        return cls(AnomalyKind.BAD_RAF, Severity.DEFECT,
                   f"unreadable RAF for PDB chain {chain}: {reason}", chain=chain)

    @classmethod
    def length_drift(cls, chain: str, delta: int) -> 'Anomaly':
        return cls(AnomalyKind.LENGTH_DRIFT, Severity.WARNING,
                   f"chain {chain} changed by {delta} residues", chain=chain, value=delta)

    @classmethod
    def unknown_residue(cls, chain: str, sid: str, description: str) -> 'Anomaly':
        return cls(AnomalyKind.UNKNOWN_RESIDUE, Severity.DEFECT,
                   f"unknown residue for {chain}: {sid} {description}",
                   chain=chain, sid=sid, description=description)

    @classmethod
    def overlapping_domains(cls, chain: str, sid: str, description: str) -> 'Anomaly':
        return cls(AnomalyKind.OVERLAPPING_DOMAINS, Severity.DEFECT,
                   f"overlapping domains for {chain}: {sid} {description}",
                   chain=chain, sid=sid, description=description)

    @classmethod
    def unknown_chain(cls, chain: str, sid: str, description: str) -> 'Anomaly':
        return cls(AnomalyKind.UNKNOWN_CHAIN, Severity.DEFECT,
                   f"unknown chain in domain {chain}: {sid} {description}",
                   chain=chain, sid=sid, description=description)

    @classmethod
    def incomplete_coverage(cls, chain: str, missing: int) -> 'Anomaly':
        return cls(AnomalyKind.INCOMPLETE_COVERAGE, Severity.WARNING,
                   f"chain {chain} not fully covered by domains; missing {missing} residues",
                   chain=chain, value=missing)

    @classmethod
    def sunid_mismatch(cls, node_id: int, computed: int, stored: int) -> 'Anomaly':
        return cls(AnomalyKind.SUNID_MISMATCH, Severity.DEFECT,
                   f"sunid mapping error: computed {computed}, stored {stored} (id {node_id})",
                   value=computed, node_id=node_id)

    @classmethod
    def sccs_mismatch(cls, node_id: int, computed: str, stored: str) -> 'Anomaly':
        return cls(AnomalyKind.SCCS_MISMATCH, Severity.DEFECT,
                   f"sccs mapping error: computed {computed}, stored {stored or '(none)'} (id {node_id})",
                   value=computed, node_id=node_id)

    @classmethod
    def reclassified(cls, node_id: int, sccs: str, parent_sccs: str) -> 'Anomaly':
        return cls(AnomalyKind.RECLASSIFIED, Severity.WARNING,
                   f"node {node_id} moved: sccs {sccs} no longer under parent {parent_sccs}",
                   value=sccs, node_id=node_id)


@dataclass
class CoverageReport:
    """Findings of one coverage pass over a release"""
    release: Release
    anomalies: List[Anomaly] = field(default_factory=list)
    chains_checked: int = 0
    chains_skipped: int = 0
    chains_fully_covered: int = 0
    residues_total: int = 0
    residues_covered: int = 0
    longest_uncovered: int = 0

    def add_chain(self, bitmap: "CoverageBitmap") -> None:
        """Fold one checked chain into the coverage totals"""
        self.chains_checked += 1
        if bitmap.is_full:
            self.chains_fully_covered += 1
        self.residues_total += len(bitmap)
        self.residues_covered += bitmap.n_covered()
        self.longest_uncovered = max(self.longest_uncovered, bitmap.longest_uncovered())

    @property
    def pct_covered(self) -> float:
        """Percent of all checked residues covered, 0-100"""
        if self.residues_total == 0:
            return 0.0
        return self.residues_covered / self.residues_total * 100.0

    def extend(self, anomalies: List[Anomaly]) -> None:
        self.anomalies.extend(anomalies)

    def by_kind(self, kind: AnomalyKind) -> List[Anomaly]:
        return [a for a in self.anomalies if a.kind == kind]

    def count(self, kind: AnomalyKind) -> int:
        return len(self.by_kind(kind))

    @property
    def has_defects(self) -> bool:
        return any(a.severity == Severity.DEFECT for a in self.anomalies)

    def summary(self) -> Dict[str, Any]:
        """Counts per anomaly kind plus chain totals"""
        kinds = Counter(a.kind.value for a in self.anomalies)
        return {
            'release': self.release.version,
            'chains_checked': self.chains_checked,
            'chains_skipped': self.chains_skipped,
            'chains_fully_covered': self.chains_fully_covered,
            'pct_covered': round(self.pct_covered, 2),
            'longest_uncovered': self.longest_uncovered,
            'anomalies': dict(kinds),
        }


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation run

    assignments maps new-release node id to the computed sunid or sccs.
    """
    name: str
    old_release: Release
    new_release: Release
    check_only: bool
    assignments: Dict[int, Any] = field(default_factory=dict)
    anomalies: List[Anomaly] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)
    next_sunid: Optional[int] = None

    def by_kind(self, kind: AnomalyKind) -> List[Anomaly]:
        return [a for a in self.anomalies if a.kind == kind]

    @property
    def mismatches(self) -> List[Anomaly]:
        return [a for a in self.anomalies
                if a.kind in (AnomalyKind.SUNID_MISMATCH, AnomalyKind.SCCS_MISMATCH)]
