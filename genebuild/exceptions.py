#!/usr/bin/env python3
"""
Errors raised by genebuild.

Everything derives from GenebuildError so job runners can tell a failed
annotation step (exit code 1) from a programming error (exit code 2).
"""
from typing import Dict, Any, Optional


class GenebuildError(Exception):
    """Root of the genebuild errors

    Attributes:
        message: Human readable description
        details: Context for logs (locus ids, accessions, paths)
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = dict(details) if details else {}


class ConfigurationError(GenebuildError):
    """Unreadable or inconsistent configuration"""


class DatabaseError(GenebuildError):
    """Core database failure"""


class DatabaseConnectionError(DatabaseError):
    """The core database could not be reached"""


class QueryError(DatabaseError):
    """A statement against the core database failed"""


class ValidationError(GenebuildError):
    """Malformed input: overlapping blocks, ragged alignments, zero-length evidence"""


class SequenceRetrievalError(GenebuildError):
    """An accession or genomic slice could not be obtained"""


class PipelineError(GenebuildError):
    """An analysis step failed"""


class ResolutionError(PipelineError):
    """Shared evidence matched no locus"""


class JobError(GenebuildError):
    """A job was misconfigured or run out of order"""
