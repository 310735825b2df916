#!/usr/bin/env python3
"""
Shared fixtures: an in-memory classification store and RAF line builders
"""
import dataclasses
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pytest

from scop.db.repositories.base import ClassificationStore
from scop.exceptions import DatabaseError
from scop.models.classification import (
    ChainRecord, ClassificationNode, CurationType, DomainRecord, HistoryEvent, Release
)
from scop.models.raf import RAFLine


# ===== RAF BUILDERS =====

def raf_residue(res_id: str, atom: str = "a", seqres: Optional[str] = None) -> Tuple[str, str, str]:
    return res_id, atom, atom if seqres is None else seqres


def observed(n: int, start: int = 1, aa: str = "a") -> List[Tuple[str, str, str]]:
    """n consecutively numbered residues with ATOM and SEQRES"""
    return [(str(i), aa, aa) for i in range(start, start + n)]


def make_raf_line(pdb: str = "1abc", chain: str = "A",
                  residues: Sequence[Tuple[str, str, str]] = (),
                  version: int = 3, date: str = "010301") -> str:
    """Build a RAF line with a well-formed 38-character header"""
    numbered = [r[0] for r in residues if r[0] not in ("B", "M", "E")]
    first = numbered[0] if numbered else ""
    last = numbered[-1] if numbered else ""
    header = f"{pdb}{chain} 0.0{version} 38 {date} 111011 {first:>5}{last:>5}"
    body = "".join(f"{res_id:>5}{atom}{seqres}" for res_id, atom, seqres in residues)
    return header + body


def make_raf(pdb: str = "1abc", chain: str = "A",
             residues: Sequence[Tuple[str, str, str]] = (), **kwargs) -> RAFLine:
    return RAFLine.parse(make_raf_line(pdb, chain, residues, **kwargs))


# ===== IN-MEMORY STORE =====

class InMemoryStore(ClassificationStore):
    """ClassificationStore kept in dictionaries, for tests

    Reads return copies, so a reconciler only sees writes made before it
    started.
    """

    def __init__(self):
        self.releases: Dict[int, Release] = {}
        self.nodes: Dict[int, ClassificationNode] = {}
        self.history: List[HistoryEvent] = []
        self.extra_sccs: List[str] = []
        self.chains: Dict[int, ChainRecord] = {}
        self.chain_pdb_release: Dict[int, str] = {}
        self.raf_lines: Dict[Tuple[int, int], str] = {}
        self.links: Dict[int, List[int]] = {}
        self.next_sunid = 0
        self.writes: List[Tuple] = []
        self.fail_writes = False

    # builders

    def add_release(self, release_id: int, version: Optional[str] = None,
                    is_public: bool = False) -> Release:
        release = Release(id=release_id, version=version or f"2.0{release_id}", is_public=is_public)
        self.releases[release_id] = release
        return release

    def add_node(self, node_id: int, release_id: int, level_id: int,
                 parent_id: Optional[int] = None, **kwargs) -> ClassificationNode:
        node = ClassificationNode(id=node_id, release_id=release_id, level_id=level_id,
                                  parent_id=parent_id, **kwargs)
        self.nodes[node_id] = node
        return node

    def add_history(self, old_node_id: int, new_node_id: Optional[int],
                    release_id: int, change_type) -> HistoryEvent:
        event = HistoryEvent(old_node_id, new_node_id, release_id, change_type)
        self.history.append(event)
        return event

    def add_chain(self, chain_id: int, pdb_code: str, chain_code: str,
                  pdb_release: Optional[str] = None) -> ChainRecord:
        chain = ChainRecord(id=chain_id, pdb_code=pdb_code, chain_code=chain_code)
        self.chains[chain_id] = chain
        self.chain_pdb_release[chain_id] = pdb_release or pdb_code
        return chain

    def set_raf(self, chain_id: int, release_id: int, line: str) -> None:
        self.raf_lines[(chain_id, release_id)] = line

    def add_domain(self, node_id: int, release_id: int, chain_id: int, sid: str,
                   description: str,
                   curation_type: CurationType = CurationType.MANUAL) -> ClassificationNode:
        node = self.add_node(node_id, release_id, 8, sid=sid, description=description,
                             curation_type=curation_type)
        self.links.setdefault(chain_id, []).append(node_id)
        return node

    # releases

    def lookup_release(self, version: str) -> Optional[Release]:
        for release in self.releases.values():
            if release.version == version:
                return release
        return None

    def get_release(self, release_id: int) -> Optional[Release]:
        return self.releases.get(release_id)

    def get_latest_release_id(self) -> int:
        return max(self.releases, default=0)

    # chains and RAF

    def get_chains_in_release(self, release_id: int) -> List[ChainRecord]:
        return [self.chains[cid] for cid, node_ids in sorted(self.links.items())
                if any(self.nodes[n].release_id == release_id for n in node_ids)]

    def get_raf_line(self, chain: ChainRecord, release_id: int) -> Optional[RAFLine]:
        line = self.raf_lines.get((chain.id, release_id))
        return RAFLine.parse(line) if line is not None else None

    def get_prior_raf_line(self, chain: ChainRecord, release_id: int) -> Optional[RAFLine]:
        return self.get_raf_line(chain, release_id - 1)

    def get_domains_for_chain(self, chain: ChainRecord, release_id: int) -> List[DomainRecord]:
        nodes = [self.nodes[n] for n in self.links.get(chain.id, [])]
        return [DomainRecord(n.sid, n.description, n.curation_type)
                for n in nodes if n.release_id == release_id]

    def chain_exists(self, chain: ChainRecord, chain_code: str) -> bool:
        pdb_release = self.chain_pdb_release[chain.id]
        return any(c.chain_code == chain_code and self.chain_pdb_release[cid] == pdb_release
                   for cid, c in self.chains.items())

    # tree

    def get_classification_tree(self, release_id: int) -> List[ClassificationNode]:
        return [dataclasses.replace(n) for n in sorted(self.nodes.values(), key=lambda n: (n.level_id, n.id))
                if n.release_id == release_id]

    def get_history(self, release_id: int) -> List[HistoryEvent]:
        return [e for e in self.history if e.release_id == release_id]

    def get_historical_sccs(self, max_release_id: int) -> Iterable[str]:
        codes = {n.sccs for n in self.nodes.values()
                 if n.release_id <= max_release_id and "." in n.sccs}
        return sorted(codes | set(self.extra_sccs))

    # writes

    def get_next_sunid(self) -> int:
        return self.next_sunid

    def _begin_write(self, node_ids: Iterable[int]) -> None:
        """Validate a batch before touching anything, like a rolled-back transaction"""
        if self.fail_writes:
            raise DatabaseError("Transaction error: store unavailable")
        unknown = sorted(i for i in node_ids if i not in self.nodes)
        if unknown:
            raise DatabaseError(f"Transaction error: unknown nodes {unknown}")

    def write_sunids(self, assignments: Dict[int, int], next_sunid: int) -> None:
        self._begin_write(assignments)
        for node_id, sunid in assignments.items():
            self.writes.append(("sunid", node_id, sunid))
            self.nodes[node_id].sunid = sunid
        self.writes.append(("next_sunid", next_sunid))
        self.next_sunid = next_sunid

    def write_sccs_codes(self, assignments: Dict[int, str], events: List[HistoryEvent]) -> None:
        self._begin_write(assignments)
        for event in events:
            self.writes.append(("history", event))
            self.history.append(event)
        for node_id, sccs in assignments.items():
            self.writes.append(("sccs", node_id, sccs))
            self.nodes[node_id].sccs = sccs


# ===== FIXTURES =====

@pytest.fixture
def store():
    """Empty in-memory store"""
    return InMemoryStore()


@pytest.fixture
def coverage_store():
    """Store with one release (id 1) ready for chain coverage tests"""
    s = InMemoryStore()
    s.add_release(1, "1.75")
    return s


@pytest.fixture
def release_pair():
    """Store with a public release 1 and an open release 2"""
    s = InMemoryStore()
    s.add_release(1, "2.01", is_public=True)
    s.add_release(2, "2.02")
    return s


@pytest.fixture
def test_config():
    return {
        'coverage': {'length_drift_threshold': 10, 'synthetic_prefixes': '0s'},
        'reconcile': {'sid_order_release': 5},
    }
