#!/usr/bin/env python3
"""
Common release handling for the stable identifier reconcilers
"""
import logging
from typing import Any, Dict, Optional, Union

from scop.db.repositories.base import ClassificationStore
from scop.exceptions import ReleaseError
from scop.models.classification import Release
from scop.models.report import ReconcileResult


class StableIdReconciler:
    """Base class for reconcilers working on an (old, new) release pair

    Writes are only allowed on the latest release, and only while it is not
    public. For any other release the reconciler runs in check-only mode:
    everything is computed and compared with the stored values, nothing is
    written.
    """

    name = "reconcile"
    requires_consecutive = False

    def __init__(self, store: ClassificationStore,
                 old_release: Union[str, int, Release],
                 new_release: Union[str, int, Release],
                 check_only: Optional[bool] = None,
                 config: Optional[Dict[str, Any]] = None):
        """
        Args:
            store: Classification store
            old_release: Previous release (Release, version or id)
            new_release: Release to assign identifiers in
            check_only: Force check-only (True) or write mode (False);
                None picks check-only for frozen releases
            config: Full configuration dictionary

        Raises:
            ReleaseError: If a release cannot be resolved, the pair is not
                consecutive where required, or writes are requested on a
                frozen release
        """
        self.store = store
        self.config = config or {}
        self.logger = logging.getLogger(f"scop.pipelines.stable_ids.{self.name}")

        self.old_release = self._resolve(old_release)
        self.new_release = self._resolve(new_release)

        if self.requires_consecutive and self.old_release.id != self.new_release.id - 1:
            raise ReleaseError(f"{self.name} only works for consecutive releases; got "
                               f"{self.old_release} and {self.new_release}")

        self.check_only = self._decide_mode(check_only)

    def _resolve(self, release: Union[str, int, Release]) -> Release:
        if isinstance(release, Release):
            return release
        return self.store.resolve_release(release)

    def _decide_mode(self, requested: Optional[bool]) -> bool:
        frozen_reason = None
        if self.new_release.is_public:
            frozen_reason = "is public"
        elif self.new_release.id != self.store.get_latest_release_id():
            frozen_reason = "is not the latest release"

        if requested is False and frozen_reason:
            raise ReleaseError(f"Can't edit release {self.new_release}: it {frozen_reason}")

        if requested is None:
            if frozen_reason:
                self.logger.info(f"Release {self.new_release} {frozen_reason}; running in check-only mode")
            return frozen_reason is not None
        return requested

    def _new_result(self) -> ReconcileResult:
        return ReconcileResult(name=self.name,
                               old_release=self.old_release,
                               new_release=self.new_release,
                               check_only=self.check_only)

    def run(self) -> ReconcileResult:
        raise NotImplementedError
