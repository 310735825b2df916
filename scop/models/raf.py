#!/usr/bin/env python3
"""
RAF (Rapid Access Format) record model

A RAF line describes one PDB chain as of a release. The first 38 characters
are a fixed-width header; the rest is a body of 7-character residue records:

    <res id, 5 chars><ATOM one-letter code><SEQRES one-letter code>

Residue ids are PDB author numbers with an optional insertion code, or one of
the tags B (SEQRES before the first ATOM record), M (SEQRES residue missing
from ATOM inside the chain) and E (SEQRES after the last ATOM record).
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional

from scop.exceptions import FormatError

HEADER_LENGTH = 38
RESIDUE_WIDTH = 7

TAG_BEGIN = "B"
TAG_MISSING = "M"
TAG_END = "E"

HETEROGENEOUS_CODE = '"'


class ResidueStatus(Enum):
    """Status of one residue record in a RAF body"""
    OBSERVED = "observed"
    MISSING = "missing"
    BEGIN = "begin"
    END = "end"
    HETEROGENEOUS = "heterogeneous"


_TAG_STATUS = {
    TAG_BEGIN: ResidueStatus.BEGIN,
    TAG_MISSING: ResidueStatus.MISSING,
    TAG_END: ResidueStatus.END,
}


@dataclass(frozen=True)
class RAFResidue:
    """One residue record of a RAF body"""
    index: int
    res_id: str
    atom: str
    seqres: str
    status: ResidueStatus

    @property
    def is_gap(self) -> bool:
        """True for B/M/E records, which have no ATOM coordinates"""
        return self.status in (ResidueStatus.BEGIN, ResidueStatus.MISSING, ResidueStatus.END)


def body_length(body: str) -> int:
    """Number of residue records in a RAF body"""
    return len(body) // RESIDUE_WIDTH


def get_res_id(body: str, index: int) -> str:
    """Residue id at a 0-based position of a RAF body"""
    i = index * RESIDUE_WIDTH
    return body[i:i + 5].strip()


def index_of(body: str, res_id: str, is_start: bool = True) -> Optional[int]:
    """Find the position of a residue id in a RAF body

    Insertion codes and old PDB files can repeat an author number, so the
    lookup direction matters: start lookups bind to the first matching
    record, end lookups to the last.

    Args:
        body: RAF body
        res_id: Residue id, e.g. "42" or "42A"
        is_start: Scan forward (True) or backward (False)

    Returns:
        0-based position, or None if the residue id does not occur
    """
    n = body_length(body)
    positions = range(n) if is_start else range(n - 1, -1, -1)
    for i in positions:
        if get_res_id(body, i) == res_id:
            return i
    return None


def residue_status(res_id: str, atom: str) -> ResidueStatus:
    if res_id in _TAG_STATUS:
        return _TAG_STATUS[res_id]
    if atom == HETEROGENEOUS_CODE:
        return ResidueStatus.HETEROGENEOUS
    return ResidueStatus.OBSERVED


@dataclass(frozen=True)
class RAFLine:
    """One chain snapshot in RAF format"""
    pdb_code: str
    chain_code: str
    version: int
    date: str
    first_residue: str
    last_residue: str
    header: str
    body: str

    @classmethod
    def parse(cls, line: str) -> 'RAFLine':
        """Parse a RAF line

        Args:
            line: Raw RAF line (a trailing newline is ignored)

        Returns:
            RAFLine instance

        Raises:
            FormatError: If the header is truncated or the body is not a
                whole number of residue records
        """
        line = line.rstrip("\r\n")
        if len(line) < HEADER_LENGTH:
            raise FormatError(f"RAF line shorter than {HEADER_LENGTH}-character header",
                              {"line": line})

        declared = line[11:13].strip()
        if declared.isdigit() and int(declared) != HEADER_LENGTH:
            raise FormatError(f"RAF header declares body offset {declared}, expected {HEADER_LENGTH}",
                              {"line": line[:HEADER_LENGTH]})

        body = line[HEADER_LENGTH:]
        if len(body) % RESIDUE_WIDTH != 0:
            raise FormatError(f"RAF body length {len(body)} is not a multiple of {RESIDUE_WIDTH}",
                              {"line": line[:HEADER_LENGTH]})

        version_char = line[9]
        if not version_char.isdigit():
            raise FormatError(f"Bad RAF version character '{version_char}'",
                              {"line": line[:HEADER_LENGTH]})

        chain = line[4]
        if chain == "_":
            chain = " "

        return cls(
            pdb_code=line[0:4],
            chain_code=chain,
            version=int(version_char),
            date=line[14:20],
            first_residue=line[28:33].strip(),
            last_residue=line[33:38].strip(),
            header=line[:HEADER_LENGTH],
            body=body,
        )

    @property
    def code(self) -> str:
        """PDB code plus chain, as printed in diagnostics (e.g. 1abcA)"""
        return self.pdb_code + (self.chain_code if self.chain_code != " " else "_")

    @property
    def length(self) -> int:
        return body_length(self.body)

    def residue_at(self, index: int) -> RAFResidue:
        """Residue record at a 0-based position

        Raises:
            IndexError: If the position is outside the body
        """
        if index < 0 or index >= self.length:
            raise IndexError(f"Residue index {index} out of range for {self.code} (length {self.length})")
        i = index * RESIDUE_WIDTH
        res_id = self.body[i:i + 5].strip()
        atom = self.body[i + 5]
        seqres = self.body[i + 6]
        return RAFResidue(index, res_id, atom, seqres, residue_status(res_id, atom))

    def residues(self) -> Iterator[RAFResidue]:
        for i in range(self.length):
            yield self.residue_at(i)

    def index_of(self, res_id: str, is_start: bool = True) -> Optional[int]:
        return index_of(self.body, res_id, is_start)

    def gap_positions(self) -> List[int]:
        """Positions of all B/M/E records"""
        return [r.index for r in self.residues() if r.is_gap]
