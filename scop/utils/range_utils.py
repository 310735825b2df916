# scop/utils/range_utils.py

import re
from dataclasses import dataclass
from typing import List, Optional, Set, Tuple

from scop.exceptions import UnknownResidueError
from scop.models.raf import RAFLine

UNNAMED_CHAIN = " "

REGION_PATTERN = re.compile(r"\s*(\S+?)-(\S+)\s*$")


@dataclass(frozen=True)
class DomainRegion:
    """One chain segment of a domain description

    A description such as "1abc A:1-100,B:" holds one region per
    comma-separated part. A missing chain prefix means the unnamed chain;
    an empty range or "-" means the whole chain.
    """
    pdb_code: str
    chain_code: str
    text: str
    start_residue: Optional[str] = None
    end_residue: Optional[str] = None

    @property
    def is_whole_chain(self) -> bool:
        return self.text in ("", "-")

    def __str__(self) -> str:
        chain = "" if self.chain_code == UNNAMED_CHAIN else f"{self.chain_code}:"
        return f"{chain}{self.text}"


def parse_region(pdb_code: str, region_str: str) -> DomainRegion:
    """Parse one comma-separated part of a domain description"""
    chain = UNNAMED_CHAIN
    if region_str.find(":") == 1:
        chain = region_str[0]
        region_str = region_str[2:]
        if chain == "_":
            chain = UNNAMED_CHAIN

    match = REGION_PATTERN.fullmatch(region_str)
    if match:
        return DomainRegion(pdb_code, chain, region_str, match.group(1), match.group(2))
    return DomainRegion(pdb_code, chain, region_str)


def parse_description(description: str) -> Tuple[str, List[DomainRegion]]:
    """Parse a leaf description into its PDB code and regions

    Args:
        description: Domain description, e.g. "1abc A:1-100,A:150-200"

    Returns:
        Tuple of (pdb_code, regions)
    """
    pdb_code = description[:4]
    regions = [parse_region(pdb_code, part) for part in description[5:].split(",")]
    return pdb_code, regions


def resolve_region(raf: RAFLine, region: DomainRegion) -> Tuple[int, int]:
    """Translate a region into inclusive 0-based positions of a RAF body

    The whole-chain shorthand always spans [0, L-1]. Otherwise the start
    binds to the first body position carrying the start residue id and the
    end to the last position carrying the end residue id.

    Raises:
        UnknownResidueError: If a residue id does not occur in the body, or
            the region text is not a range
    """
    if region.is_whole_chain:
        return 0, raf.length - 1

    if region.start_residue is None or region.end_residue is None:
        raise UnknownResidueError(f"Cannot parse region '{region.text}' for {raf.code}",
                                  {"region": str(region)})

    start = raf.index_of(region.start_residue, True)
    end = raf.index_of(region.end_residue, False)
    if start is None or end is None:
        missing = region.start_residue if start is None else region.end_residue
        raise UnknownResidueError(f"Residue {missing} not found in {raf.code}",
                                  {"region": str(region), "residue": missing})
    return start, end


def positions_to_range(positions: Set[int]) -> str:
    """Convert set of positions to range string"""
    if not positions:
        return ""

    sorted_positions = sorted(positions)

    segments = []
    seg_start = sorted_positions[0]
    seg_end = seg_start

    for pos in sorted_positions[1:]:
        if pos == seg_end + 1:
            seg_end = pos
        else:
            segments.append(f"{seg_start}-{seg_end}")
            seg_start = pos
            seg_end = pos

    segments.append(f"{seg_start}-{seg_end}")

    return ",".join(segments)
