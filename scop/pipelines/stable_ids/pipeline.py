#!/usr/bin/env python3
"""
Full stable identifier pass: px, then interior sunids, then sccs
"""
import logging
from typing import Any, Dict, List, Optional, Union

from scop.db.repositories.base import ClassificationStore
from scop.error_handlers import log_exception
from scop.exceptions import SCOPError
from scop.models.classification import Release
from scop.models.report import ReconcileResult

from .px import StablePXReconciler
from .sccs import StableSCCSReconciler
from .sunid import StableSunidReconciler

RECONCILERS = {
    StablePXReconciler.name: StablePXReconciler,
    StableSunidReconciler.name: StableSunidReconciler,
    StableSCCSReconciler.name: StableSCCSReconciler,
}

STEP_ORDER = ("px", "sunid", "sccs")

logger = logging.getLogger(__name__)


def reconcile_release(store: ClassificationStore,
                      old_release: Union[str, int, Release],
                      new_release: Union[str, int, Release],
                      check_only: Optional[bool] = None,
                      config: Optional[Dict[str, Any]] = None,
                      steps=STEP_ORDER) -> List[ReconcileResult]:
    """Run the reconcilers in order on one release pair

    Each step reads what the previous one wrote, so in check-only mode the
    later steps compare against the stored (not the recomputed) sunids.

    Args:
        store: Classification store
        old_release: Previous release
        new_release: Release to assign identifiers in
        check_only: As for each reconciler
        config: Full configuration dictionary
        steps: Subset of "px", "sunid", "sccs", run in the given order

    Returns:
        One result per step
    """
    # release checks for every step run before anything is written
    reconcilers = [RECONCILERS[step](store, old_release, new_release,
                                     check_only=check_only, config=config)
                   for step in steps]

    results = []
    for step, reconciler in zip(steps, reconcilers):
        logger.info(f"Running {step} reconciliation "
                    f"({'check only' if reconciler.check_only else 'write'})")
        try:
            results.append(reconciler.run())
        except SCOPError as e:
            log_exception(logger, e, context={"step": step, "completed_steps": [r.name for r in results]})
            raise
    return results
