#!/usr/bin/env python3
"""
Repositories for the SCOP tools
"""
from .base import ClassificationStore
from .scop_repository import SCOPRepository

__all__ = ['ClassificationStore', 'SCOPRepository']
