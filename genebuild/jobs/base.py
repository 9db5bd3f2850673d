#!/usr/bin/env python3
"""
Base interface for annotation jobs.

An annotation job gathers its input, runs one analysis over it and writes
the results back. Collaborators (alignment sources, genome access, writers)
are handed in rather than inherited.
"""
import abc
import logging
from typing import Any, List


class AnnotationJob(abc.ABC):
    """Base interface for annotation jobs"""

    analysis_type = "base"

    def __init__(self, input_id: str):
        self.input_id = input_id
        self.logger = logging.getLogger(f"genebuild.jobs.{self.analysis_type}")
        self._output: List[Any] = []
        self._input_fetched = False

    @abc.abstractmethod
    def fetch_input(self) -> None:
        """Gather everything the analysis needs"""
        pass

    @abc.abstractmethod
    def run(self) -> None:
        """Run the analysis over the fetched input"""
        pass

    @abc.abstractmethod
    def write_output(self) -> int:
        """Persist the output

        Returns:
            Number of results written
        """
        pass

    @property
    def output(self) -> List[Any]:
        return list(self._output)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(input_id={self.input_id!r})"
