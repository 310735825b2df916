"""
Command-line interface for the SCOP tools.

Subcommands: check-coverage, stable-px, stable-sunid, stable-sccs, reconcile.
"""
