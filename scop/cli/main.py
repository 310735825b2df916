# scop/cli/main.py
import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from scop.core.context import ApplicationContext
from scop.core.logging_config import LoggingManager
from scop.db.repositories.base import ClassificationStore
from scop.error_handlers import handle_exceptions
from scop.models.report import CoverageReport, ReconcileResult
from scop.pipelines.coverage import DomainCoverageChecker
from scop.pipelines.stable_ids.pipeline import STEP_ORDER, reconcile_release
from scop.utils.report_export import write_anomaly_csv

RECONCILE_COMMANDS = {
    'stable-px': ("px",),
    'stable-sunid': ("sunid",),
    'stable-sccs': ("sccs",),
    'reconcile': STEP_ORDER,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='SCOPe RAF coverage and stable identifier tools')

    # Global options
    parser.add_argument('--config', type=str, help='Path to configuration file')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase verbosity (can be used multiple times)')
    parser.add_argument('--log-file', type=str,
                        help='Log to file in addition to stderr')
    parser.add_argument('--log-dir', type=str,
                        help='Directory for log files')
    parser.add_argument('--json', action='store_true',
                        help='Print a JSON summary after the diagnostics')
    parser.add_argument('--csv', type=str,
                        help='Also write all anomalies to this CSV file')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    coverage_parser = subparsers.add_parser('check-coverage',
                                            help='Check domain coverage of every chain in a release')
    coverage_parser.add_argument('release', help='Release version (e.g. 2.07) or id')
    coverage_parser.add_argument('--drift-threshold', type=int,
                                 help='Flag chains whose length changed by more than this many residues')

    helps = {
        'stable-px': 'Assign stable sunids to domains (px)',
        'stable-sunid': 'Assign stable sunids to interior nodes',
        'stable-sccs': 'Assign stable sccs codes',
        'reconcile': 'Run px, sunid and sccs assignment in order',
    }
    for command, help_text in helps.items():
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument('old_release', help='Previous release version or id')
        sub.add_argument('new_release', help='Release to assign identifiers in')
        sub.add_argument('--check-only', action='store_true',
                         help='Compare with stored values instead of writing')

    return parser


def print_coverage(report: CoverageReport, as_json: bool = False) -> None:
    for anomaly in report.anomalies:
        print(anomaly)
    if as_json:
        print(json.dumps(report.summary(), indent=2))


def print_reconcile(results: List[ReconcileResult], as_json: bool = False) -> None:
    for result in results:
        for anomaly in result.anomalies:
            print(anomaly)
    if as_json:
        summary = [{
            'step': r.name,
            'old_release': r.old_release.version,
            'new_release': r.new_release.version,
            'check_only': r.check_only,
            'assigned': len(r.assignments),
            'anomalies': len(r.anomalies),
            'next_sunid': r.next_sunid,
            'stats': r.stats,
        } for r in results]
        print(json.dumps(summary, indent=2))


def run_command(args: argparse.Namespace, store: ClassificationStore,
                config: Dict[str, Any]) -> int:
    """Execute a parsed command against a store

    Anomalies are printed to stdout, one per line; they do not change the
    exit code.
    """
    logger = logging.getLogger("scop.cli")

    if args.command == 'check-coverage':
        checker = DomainCoverageChecker(store, config)
        report = checker.check_release(args.release)
        print_coverage(report, args.json)
        if args.csv:
            write_anomaly_csv(report.anomalies, args.csv)
        logger.info(f"Coverage check of {report.release} reported {len(report.anomalies)} anomalies")
        return 0

    if args.command in RECONCILE_COMMANDS:
        check_only = True if args.check_only else None
        results = reconcile_release(store, args.old_release, args.new_release,
                                    check_only=check_only, config=config,
                                    steps=RECONCILE_COMMANDS[args.command])
        print_reconcile(results, args.json)
        if args.csv:
            write_anomaly_csv([a for r in results for a in r.anomalies], args.csv)
        return 0

    logger.error(f"Unknown command: {args.command}")
    return 1


@handle_exceptions(exit_on_error=False)
def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    context = ApplicationContext(args.config)
    if getattr(args, 'drift_threshold', None) is not None:
        context.update_config('coverage', 'length_drift_threshold', args.drift_threshold)
    config = context.config_manager.config

    logger = LoggingManager.configure(
        verbose=args.verbose > 0,
        log_file=args.log_file,
        log_dir=args.log_dir,
        component="scop",
        config=config
    )
    logger.info(f"SCOP tools starting: {args.command}")

    return run_command(args, context.store, config)


if __name__ == '__main__':
    sys.exit(main())
