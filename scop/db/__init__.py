#!/usr/bin/env python3
"""
Database access for the SCOP tools
"""
from .manager import DBManager

__all__ = ['DBManager']
