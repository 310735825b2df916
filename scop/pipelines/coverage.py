#!/usr/bin/env python3
"""
Domain coverage verification

For every chain classified in a release, map each domain's regions onto the
chain's frozen RAF body and report overlaps, references to unknown chains or
residues, residues no domain covers, and chains whose length changed
noticeably since the previous release.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from scop.db.repositories.base import ClassificationStore
from scop.exceptions import FormatError, UnknownResidueError
from scop.models.classification import ChainRecord, DomainRecord, Release
from scop.models.raf import RAFLine
from scop.models.report import Anomaly, CoverageReport, Severity
from scop.utils.coverage import CoverageBitmap
from scop.utils.range_utils import parse_description, resolve_region


@dataclass
class ChainCoverage:
    """Result of checking one chain"""
    chain: ChainRecord
    raf: Optional[RAFLine] = None
    bitmap: Optional[CoverageBitmap] = None
    gaps_ok: bool = False
    anomalies: List[Anomaly] = field(default_factory=list)


class DomainCoverageChecker:
    """Checks that domains tile each chain of a release exactly once"""

    def __init__(self, store: ClassificationStore, config: Optional[Dict[str, Any]] = None):
        """
        Args:
            store: Classification store
            config: Full configuration dictionary; only the 'coverage'
                section is read
        """
        self.store = store
        self.logger = logging.getLogger(__name__)

        coverage_config = (config or {}).get('coverage', {})
        self.length_drift_threshold = coverage_config.get('length_drift_threshold', 10)
        self.synthetic_prefixes = coverage_config.get('synthetic_prefixes', '0s')

    def check_release(self, release: Union[str, int, Release]) -> CoverageReport:
        """Check every chain linked to a node of the release

        Args:
            release: Release, version string or release id

        Returns:
            Report with all anomalies found
        """
        if not isinstance(release, Release):
            release = self.store.resolve_release(release)

        report = CoverageReport(release=release)
        chains = self.store.get_chains_in_release(release.id)
        self.logger.info(f"Checking coverage of {len(chains)} chains in release {release}")

        for chain in chains:
            result = self.check_chain(chain, release.id)
            if result.bitmap is None:
                report.chains_skipped += 1
            else:
                report.add_chain(result.bitmap)
            report.extend(result.anomalies)

        self.logger.info(f"Coverage check done: {report.chains_checked} chains checked, "
                         f"{report.chains_skipped} without usable RAF, {len(report.anomalies)} anomalies, "
                         f"{report.pct_covered:.1f}% of residues covered")
        return report

    def check_chain(self, chain: ChainRecord, release_id: int) -> ChainCoverage:
        """Check one chain as of a release"""
        result = ChainCoverage(chain=chain)

        try:
            raf = self.store.get_raf_line(chain, release_id)
        except FormatError as e:
            self._report(result, Anomaly.bad_raf(chain.code, e.message))
            return result
        if raf is None:
            self._report(result, Anomaly.missing_raf(chain.code, self._missing_raf_severity(chain)))
            return result
        result.raf = raf

        try:
            prior = self.store.get_prior_raf_line(chain, release_id)
        except FormatError as e:
            self.logger.warning(f"Skipping length check for {raf.code}: bad prior RAF: {e.message}")
            prior = None
        if prior is not None:
            delta = raf.length - prior.length
            if abs(delta) > self.length_drift_threshold:
                self._report(result, Anomaly.length_drift(raf.code, delta))

        bitmap = CoverageBitmap(raf.length)
        result.bitmap = bitmap

        for domain in self.store.get_domains_for_chain(chain, release_id):
            if domain.gaps_ok:
                result.gaps_ok = True
            self._apply_domain(result, raf, bitmap, domain)

        bitmap.mark_positions(raf.gap_positions())

        if not result.gaps_ok:
            missing = bitmap.n_uncovered()
            if missing > 0:
                self.logger.debug(f"{raf.code} {bitmap.pct_covered:.1f}% covered, "
                                  f"uncovered positions: {bitmap.uncovered_ranges()}")
                self._report(result, Anomaly.incomplete_coverage(raf.code, missing))

        return result

    def _apply_domain(self, result: ChainCoverage, raf: RAFLine,
                      bitmap: CoverageBitmap, domain: DomainRecord) -> None:
        _, regions = parse_description(domain.description)
        for region in regions:
            if region.chain_code != raf.chain_code:
                if not self.store.chain_exists(result.chain, region.chain_code):
                    self._report(result, Anomaly.unknown_chain(raf.code, domain.sid, domain.description))
                continue

            try:
                start, end = resolve_region(raf, region)
            except UnknownResidueError as e:
                self.logger.debug(str(e))
                self._report(result, Anomaly.unknown_residue(raf.code, domain.sid, domain.description))
                continue

            # one report per region, however many residues overlap
            if bitmap.mark(start, end):
                self._report(result, Anomaly.overlapping_domains(raf.code, domain.sid, domain.description))

    def _missing_raf_severity(self, chain: ChainRecord) -> Severity:
        if chain.pdb_code and chain.pdb_code[0] in self.synthetic_prefixes:
            return Severity.WARNING
        return Severity.DEFECT

    def _report(self, result: ChainCoverage, anomaly: Anomaly) -> None:
        self.logger.warning(str(anomaly))
        result.anomalies.append(anomaly)
