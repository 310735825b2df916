#!/usr/bin/env python3
"""
Record-level store interface used by the coverage checker and the
stable identifier reconcilers
"""
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Union

from scop.exceptions import ReleaseError
from scop.models.classification import (
    ChainRecord, ClassificationNode, DomainRecord, HistoryEvent, Release
)
from scop.models.raf import RAFLine


class ClassificationStore(ABC):
    """Release-scoped access to the classification tree and frozen RAF lines"""

    # Releases

    @abstractmethod
    def lookup_release(self, version: str) -> Optional[Release]:
        """Release with the given version string (e.g. "2.07"), or None"""

    @abstractmethod
    def get_release(self, release_id: int) -> Optional[Release]:
        """Release by id, or None"""

    @abstractmethod
    def get_latest_release_id(self) -> int:
        """Highest release id on file"""

    def resolve_release(self, name: Union[str, int]) -> Release:
        """Resolve a version string or numeric id to a release

        Raises:
            ReleaseError: If no release matches
        """
        release = None
        if isinstance(name, int):
            release = self.get_release(name)
        else:
            release = self.lookup_release(name)
            if release is None and name.isdigit():
                release = self.get_release(int(name))
        if release is None:
            raise ReleaseError(f"Can't determine SCOP version from {name}", {"release": name})
        return release

    # Chains and RAF

    @abstractmethod
    def get_chains_in_release(self, release_id: int) -> List[ChainRecord]:
        """Distinct PDB chains linked to any node of the release"""

    @abstractmethod
    def get_raf_line(self, chain: ChainRecord, release_id: int) -> Optional[RAFLine]:
        """RAF line frozen for the chain as of the release"""

    @abstractmethod
    def get_prior_raf_line(self, chain: ChainRecord, release_id: int) -> Optional[RAFLine]:
        """RAF line of the same PDB entry and chain letter as of the previous release"""

    @abstractmethod
    def get_domains_for_chain(self, chain: ChainRecord, release_id: int) -> List[DomainRecord]:
        """Nodes of the release linked to the chain"""

    @abstractmethod
    def chain_exists(self, chain: ChainRecord, chain_code: str) -> bool:
        """Whether the PDB release holding chain also holds a chain with this code"""

    # Classification tree

    @abstractmethod
    def get_classification_tree(self, release_id: int) -> List[ClassificationNode]:
        """All nodes of the release"""

    @abstractmethod
    def get_history(self, release_id: int) -> List[HistoryEvent]:
        """History events recorded for the release"""

    @abstractmethod
    def get_historical_sccs(self, max_release_id: int) -> Iterable[str]:
        """Distinct dotted sccs values of all releases up to max_release_id"""

    # Writes

    @abstractmethod
    def get_next_sunid(self) -> int:
        """Persisted next-sunid counter (0 if never written)"""

    @abstractmethod
    def write_sunids(self, assignments: Dict[int, int], next_sunid: int) -> None:
        """Store sunids by node id and the next-sunid counter, all or nothing"""

    @abstractmethod
    def write_sccs_codes(self, assignments: Dict[int, str], events: List[HistoryEvent]) -> None:
        """Store sccs codes by node id and new history events, all or nothing"""
