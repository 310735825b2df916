#!/usr/bin/env python3
"""
Classification tree models for the SCOP tools
Defines releases, tree nodes, history events and the chain/domain
records consumed by the coverage checker.
"""
from dataclasses import dataclass
from datetime import date
from enum import IntEnum
from typing import Optional, Dict, Any


class Level(IntEnum):
    """Levels of the classification tree (scop_level ids)"""
    ROOT = 1
    CLASS = 2
    FOLD = 3
    SUPERFAMILY = 4
    FAMILY = 5
    PROTEIN = 6
    SPECIES = 7
    DOMAIN = 8


class ChangeType(IntEnum):
    """History change types (scop_history_type ids)"""
    OBSOLETE = 1
    DELETED = 2
    REPLACED = 3
    MERGE = 4
    SPLIT = 5
    MOVE = 6
    MODIFY = 7
    RENAME = 10
    IDENTICAL = 11
    PROMOTED = 12

    @property
    def preserves_identity(self) -> bool:
        """True for changes that keep the node's sunid"""
        return self in (ChangeType.RENAME, ChangeType.IDENTICAL)


class CurationType(IntEnum):
    """How a node was curated (curation_type ids)"""
    MANUAL = 1
    MANUALLY_GAPPED = 2
    AUTOMATED = 3


@dataclass
class Release:
    """One SCOP release"""
    id: int
    version: str
    is_public: bool = False
    freeze_date: Optional[date] = None

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'Release':
        return cls(
            id=row.get('id'),
            version=row.get('version', ''),
            is_public=bool(row.get('is_public', 0)),
            freeze_date=row.get('freeze_date')
        )

    def __str__(self) -> str:
        return f"{self.version} (id {self.id})"


@dataclass
class ClassificationNode:
    """A node of one release's classification tree

    sunid is 0 and sccs is empty until the reconcilers assign them.
    """
    id: int
    release_id: int
    level_id: int
    parent_id: Optional[int] = None
    sunid: int = 0
    sid: Optional[str] = None
    sccs: str = ""
    description: str = ""
    curation_type: CurationType = CurationType.MANUAL

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'ClassificationNode':
        """Create instance from database row

        Args:
            row: Database row as dictionary

        Returns:
            ClassificationNode instance
        """
        return cls(
            id=row.get('id'),
            release_id=row.get('release_id'),
            level_id=row.get('level_id'),
            parent_id=row.get('parent_node_id'),
            sunid=row.get('sunid') or 0,
            sid=row.get('sid'),
            sccs=row.get('sccs') or "",
            description=row.get('description') or "",
            curation_type=CurationType(row.get('curation_type_id') or CurationType.MANUAL)
        )


@dataclass(frozen=True)
class HistoryEvent:
    """A change linking a node of the previous release to one of this release

    new_node_id is None for obsoleted nodes.
    """
    old_node_id: int
    new_node_id: Optional[int]
    release_id: int
    change_type: ChangeType

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'HistoryEvent':
        return cls(
            old_node_id=row.get('old_node_id'),
            new_node_id=row.get('new_node_id'),
            release_id=row.get('release_id'),
            change_type=ChangeType(row.get('change_type_id'))
        )


@dataclass(frozen=True)
class ChainRecord:
    """A PDB chain as stored for one PDB release"""
    id: int
    pdb_code: str
    chain_code: str

    @property
    def code(self) -> str:
        return self.pdb_code + (self.chain_code if self.chain_code != " " else "_")


@dataclass(frozen=True)
class DomainRecord:
    """A leaf node linked to a chain, as needed for coverage checks"""
    sid: str
    description: str
    curation_type: CurationType = CurationType.MANUAL

    @property
    def gaps_ok(self) -> bool:
        return self.curation_type == CurationType.MANUALLY_GAPPED
