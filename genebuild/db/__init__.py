#!/usr/bin/env python3
"""
Database access for the genebuild pipeline
"""
from .manager import DBManager

__all__ = ['DBManager']
