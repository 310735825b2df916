#!/usr/bin/env python3
"""
Exception hierarchy for the SCOP maintenance tools.
All custom exceptions should inherit from SCOPError.

Data-integrity findings (missing RAF, overlapping domains, ...) are not
exceptions; they are accumulated as Anomaly records. Exceptions are reserved
for usage errors and for signs that the store is already inconsistent.
"""
from typing import Dict, Any, Optional


class SCOPError(Exception):
    """Base exception for all SCOP-related errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize with error message and optional details

        Args:
            message: Error message
            details: Optional details dictionary with context
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(SCOPError):
    """Error related to configuration issues"""
    pass


class ReleaseError(ConfigurationError):
    """Bad release arguments: unknown version, non-consecutive pair,
    or an attempt to modify a frozen release"""
    pass


class DatabaseError(SCOPError):
    """Base class for database-related errors"""
    pass


class ConnectionError(DatabaseError):
    """Error connecting to a database"""
    pass


class QueryError(DatabaseError):
    """Error executing a database query"""
    pass


class ValidationError(SCOPError):
    """Data validation error"""
    pass


class FormatError(ValidationError):
    """A RAF line (or other fixed-format record) could not be parsed"""
    pass


class UnknownResidueError(ValidationError):
    """A residue id named in a domain region is not present in the RAF body"""
    pass


class CorruptionError(SCOPError):
    """The classification store is already inconsistent (duplicate sccs or
    sunid, node that cannot be resolved). No automated repair is attempted."""
    pass
