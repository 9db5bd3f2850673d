#!/usr/bin/env python3
"""
pyGenebuild

Genome annotation helpers: processed pseudogene detection from cDNA
alignments and discrimination of ESTs shared between loci.
"""

__version__ = '0.1.0'
__license__ = 'MIT'

from .core.context import ApplicationContext
from .exceptions import GenebuildError
from .error_handlers import handle_exceptions

__all__ = ['ApplicationContext', 'GenebuildError', 'handle_exceptions']
