#!/usr/bin/env python3
"""
Default configuration values for the SCOP tools
"""

DEFAULT_CONFIG = {
    'database': {
        'database': 'scop',
        'host': 'localhost',
        'port': 5432,
        'user': 'scop',
    },
    'coverage': {
        # chains whose length moved by more than this between releases are flagged
        'length_drift_threshold': 10,
        # PDB codes starting with these characters are synthetic entries
        'synthetic_prefixes': '0s',
    },
    'reconcile': {
        # new sids are processed by node id before this release id, by sid after
        'sid_order_release': 5,
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    },
}
