#!/usr/bin/env python3
"""
Stable identifier reconciliation across releases
"""
from .partition import Partition, SunidCounter
from .px import StablePXReconciler
from .sunid import StableSunidReconciler
from .sccs import StableSCCSReconciler, SuffixTable
from .pipeline import reconcile_release

__all__ = [
    'Partition', 'SunidCounter',
    'StablePXReconciler', 'StableSunidReconciler', 'StableSCCSReconciler',
    'SuffixTable', 'reconcile_release'
]
