#!/usr/bin/env python3
"""
pySCOP: maintenance tools for the SCOPe classification

RAF chain-coverage checks and stable identifier (sunid, sccs)
assignment across releases.
"""

__version__ = '0.1.0'
__author__ = 'SCOPe Team'
__license__ = 'LGPL-2.1'

from .core.context import ApplicationContext
from .exceptions import SCOPError
from .error_handlers import handle_exceptions

__all__ = ['ApplicationContext', 'SCOPError', 'handle_exceptions']
