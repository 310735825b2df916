#!/usr/bin/env python3
"""
SCOP Tools Models Module
"""
from .raf import RAFLine, RAFResidue, ResidueStatus
from .classification import (
    Level, ChangeType, CurationType,
    Release, ClassificationNode, HistoryEvent,
    ChainRecord, DomainRecord
)
from .report import Severity, AnomalyKind, Anomaly, CoverageReport, ReconcileResult

__all__ = [
    # RAF
    'RAFLine', 'RAFResidue', 'ResidueStatus',

    # Classification tree
    'Level', 'ChangeType', 'CurationType',
    'Release', 'ClassificationNode', 'HistoryEvent',
    'ChainRecord', 'DomainRecord',

    # Reports
    'Severity', 'AnomalyKind', 'Anomaly', 'CoverageReport', 'ReconcileResult'
]
