# scop/db/repositories/scop_repository.py
#!/usr/bin/env python3
"""
SCOP repository
Handles database operations for releases, classification nodes,
history and frozen RAF lines
"""
import logging
from typing import Dict, Iterable, List, Optional

from psycopg2.extras import execute_values

from scop.db.manager import DBManager
from scop.db.repositories.base import ClassificationStore
from scop.exceptions import FormatError
from scop.models.classification import (
    ChainRecord, ClassificationNode, CurationType, DomainRecord, HistoryEvent, Release
)
from scop.models.raf import RAFLine


def _chain_code(value: Optional[str]) -> str:
    if not value or value == "_":
        return " "
    return value


class SCOPRepository(ClassificationStore):
    """Repository for SCOP classification data"""

    def __init__(self, db_manager: DBManager):
        """Initialize repository

        Args:
            db_manager: Database manager instance
        """
        self.db = db_manager
        self.logger = logging.getLogger("scop.db.scop_repository")

    def lookup_release(self, version: str) -> Optional[Release]:
        query = """
        SELECT id, version, is_public, freeze_date
        FROM scop_release
        WHERE version = %s
        """
        rows = self.db.execute_dict_query(query, (version,))
        return Release.from_db_row(rows[0]) if rows else None

    def get_release(self, release_id: int) -> Optional[Release]:
        query = """
        SELECT id, version, is_public, freeze_date
        FROM scop_release
        WHERE id = %s
        """
        rows = self.db.execute_dict_query(query, (release_id,))
        return Release.from_db_row(rows[0]) if rows else None

    def get_latest_release_id(self) -> int:
        rows = self.db.execute_query("SELECT max(id) FROM scop_release")
        return (rows[0][0] or 0) if rows else 0

    def get_chains_in_release(self, release_id: int) -> List[ChainRecord]:
        query = """
        SELECT DISTINCT c.id, e.code, c.chain
        FROM link_pdb l
        JOIN scop_node n ON l.node_id = n.id
        JOIN pdb_chain c ON l.pdb_chain_id = c.id
        JOIN pdb_release r ON c.pdb_release_id = r.id
        JOIN pdb_entry e ON r.pdb_entry_id = e.id
        WHERE n.release_id = %s
        ORDER BY c.id
        """
        rows = self.db.execute_query(query, (release_id,))
        return [ChainRecord(id=row[0], pdb_code=row[1], chain_code=_chain_code(row[2]))
                for row in rows]

    def _parse_raf(self, line: Optional[str], chain: ChainRecord) -> Optional[RAFLine]:
        if line is None:
            return None
        try:
            return RAFLine.parse(line)
        except FormatError as e:
            self.logger.error(f"Bad RAF line for {chain.code}: {e}")
            raise

    def get_raf_line(self, chain: ChainRecord, release_id: int) -> Optional[RAFLine]:
        query = """
        SELECT line FROM raf
        WHERE first_release_id <= %s AND last_release_id >= %s
          AND pdb_chain_id = %s
        LIMIT 1
        """
        rows = self.db.execute_query(query, (release_id, release_id, chain.id))
        return self._parse_raf(rows[0][0] if rows else None, chain)

    def get_prior_raf_line(self, chain: ChainRecord, release_id: int) -> Optional[RAFLine]:
        query = """
        SELECT r.line
        FROM raf r
        JOIN pdb_chain c1 ON r.pdb_chain_id = c1.id
        JOIN pdb_release r1 ON c1.pdb_release_id = r1.id
        JOIN pdb_release r2 ON r1.pdb_entry_id = r2.pdb_entry_id
        JOIN pdb_chain c2 ON c2.pdb_release_id = r2.id AND c2.chain = c1.chain
        WHERE r.first_release_id <= %s AND r.last_release_id >= %s
          AND c2.id = %s
        LIMIT 1
        """
        prior = release_id - 1
        rows = self.db.execute_query(query, (prior, prior, chain.id))
        return self._parse_raf(rows[0][0] if rows else None, chain)

    def get_domains_for_chain(self, chain: ChainRecord, release_id: int) -> List[DomainRecord]:
        query = """
        SELECT n.sid, n.description, n.curation_type_id
        FROM scop_node n
        JOIN link_pdb l ON n.id = l.node_id
        WHERE n.release_id = %s AND l.pdb_chain_id = %s
        ORDER BY n.id
        """
        rows = self.db.execute_query(query, (release_id, chain.id))
        return [DomainRecord(sid=row[0], description=row[1] or "",
                             curation_type=CurationType(row[2] or CurationType.MANUAL))
                for row in rows]

    def chain_exists(self, chain: ChainRecord, chain_code: str) -> bool:
        codes = (chain_code, "_") if chain_code == " " else (chain_code,)
        query = """
        SELECT c2.id
        FROM pdb_chain c1
        JOIN pdb_chain c2 ON c1.pdb_release_id = c2.pdb_release_id
        WHERE c1.id = %s AND c2.chain IN %s
        LIMIT 1
        """
        rows = self.db.execute_query(query, (chain.id, codes))
        return bool(rows)

    def get_classification_tree(self, release_id: int) -> List[ClassificationNode]:
        query = """
        SELECT id, release_id, level_id, parent_node_id, sunid, sid, sccs,
               description, curation_type_id
        FROM scop_node
        WHERE release_id = %s
        ORDER BY level_id, id
        """
        rows = self.db.execute_dict_query(query, (release_id,))
        nodes = [ClassificationNode.from_db_row(row) for row in rows]
        self.logger.debug(f"Loaded {len(nodes)} nodes for release {release_id}")
        return nodes

    def get_history(self, release_id: int) -> List[HistoryEvent]:
        query = """
        SELECT old_node_id, new_node_id, release_id, change_type_id
        FROM scop_history
        WHERE release_id = %s
        ORDER BY id
        """
        rows = self.db.execute_dict_query(query, (release_id,))
        return [HistoryEvent.from_db_row(row) for row in rows]

    def get_historical_sccs(self, max_release_id: int) -> Iterable[str]:
        query = """
        SELECT DISTINCT sccs FROM scop_node
        WHERE sccs LIKE '%%.%%' AND release_id <= %s
        """
        rows = self.db.execute_query(query, (max_release_id,))
        return [row[0] for row in rows]

    def get_next_sunid(self) -> int:
        rows = self.db.execute_query("SELECT sunid FROM scop_next_sunid LIMIT 1")
        return rows[0][0] if rows else 0

    def write_sunids(self, assignments: Dict[int, int], next_sunid: int) -> None:
        """Update node sunids and the next-sunid counter in one transaction"""
        values = [(node_id, sunid) for node_id, sunid in assignments.items()]

        def _store(cursor):
            if values:
                execute_values(cursor, """
                    UPDATE scop_node AS n SET sunid = v.sunid
                    FROM (VALUES %s) AS v(id, sunid)
                    WHERE n.id = v.id
                    """, values)
            cursor.execute("DELETE FROM scop_next_sunid")
            cursor.execute("INSERT INTO scop_next_sunid (sunid) VALUES (%s)", (next_sunid,))

        self.db.execute_transaction(_store)
        self.logger.info(f"Stored {len(values)} sunids, next sunid set to {next_sunid}")

    def write_sccs_codes(self, assignments: Dict[int, str], events: List[HistoryEvent]) -> None:
        """Insert history events and update node sccs in one transaction"""
        values = [(node_id, sccs) for node_id, sccs in assignments.items()]
        history = [(e.old_node_id, e.new_node_id, e.release_id, int(e.change_type)) for e in events]

        def _store(cursor):
            if history:
                execute_values(cursor, """
                    INSERT INTO scop_history (old_node_id, new_node_id, release_id,
                                              change_type_id, time_stamp)
                    VALUES %s
                    """, history, template="(%s, %s, %s, %s, now())")
            if values:
                execute_values(cursor, """
                    UPDATE scop_node AS n SET sccs = v.sccs
                    FROM (VALUES %s) AS v(id, sccs)
                    WHERE n.id = v.id
                    """, values)

        self.db.execute_transaction(_store)
        for event in events:
            self.logger.info(f"Recorded {event.change_type.name} history: "
                             f"{event.old_node_id} -> {event.new_node_id}")
        self.logger.info(f"Stored {len(values)} sccs codes")
