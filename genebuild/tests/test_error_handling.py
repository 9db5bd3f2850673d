#!/usr/bin/env python3
"""
Tests for error formatting, the exception handling decorator and job
execution exit codes.
"""
import logging
from unittest.mock import Mock

import pytest

from genebuild.error_handlers import format_error, handle_exceptions, log_exception
from genebuild.exceptions import (
    GenebuildError, PipelineError, ResolutionError, SequenceRetrievalError, ValidationError
)
from genebuild.jobs.runner import execute_job


class TestExceptionHierarchy:

    def test_details(self):
        error = ValidationError("bad input", {"field": "blocks"})
        assert error.message == "bad input"
        assert error.details == {"field": "blocks"}
        assert str(error) == "bad input"

    def test_resolution_is_pipeline_error(self):
        assert issubclass(ResolutionError, PipelineError)
        assert issubclass(SequenceRetrievalError, GenebuildError)


class TestFormatError:

    def test_known_error(self):
        error = ResolutionError("no locus", {"loci": ["a", "b"]})

        assert format_error(error) == "ResolutionError: no locus"
        assert "Details: {'loci': ['a', 'b']}" in format_error(error, verbose=True)

    def test_unexpected_error(self):
        assert format_error(KeyError("x")) == "Unexpected Error: 'x'"


class TestHandleExceptions:

    def test_passes_return_value(self):
        @handle_exceptions()
        def ok():
            return 42

        assert ok() == 42

    def test_genebuild_error_returns_1(self, capsys):
        @handle_exceptions()
        def fails():
            raise ValidationError("broken")

        assert fails() == 1
        assert "ValidationError: broken" in capsys.readouterr().err

    def test_unexpected_error_returns_2(self):
        @handle_exceptions()
        def fails():
            raise RuntimeError("boom")

        assert fails() == 2

    def test_keyboard_interrupt_returns_130(self):
        @handle_exceptions()
        def interrupted():
            raise KeyboardInterrupt()

        assert interrupted() == 130

    def test_exit_on_error(self):
        @handle_exceptions(exit_on_error=True)
        def fails():
            raise ValidationError("broken")

        with pytest.raises(SystemExit) as exc_info:
            fails()
        assert exc_info.value.code == 1

    def test_log_exception_context(self, caplog):
        logger = logging.getLogger("genebuild.tests")
        with caplog.at_level(logging.ERROR):
            log_exception(logger, ValidationError("bad", {"a": 1}), context={"b": 2})

        record = caplog.records[-1]
        assert record.getMessage() == "ValidationError: bad"
        assert record.context == {"a": 1, "b": 2}


class TestExecuteJob:

    def test_success(self):
        job = Mock()
        job.write_output.return_value = 3

        assert execute_job(job) == 0
        job.fetch_input.assert_called_once()
        job.run.assert_called_once()

    def test_pipeline_failure(self):
        job = Mock()
        job.run.side_effect = ResolutionError("unresolved")

        assert execute_job(job) == 1
        job.write_output.assert_not_called()

    def test_unexpected_failure(self):
        job = Mock()
        job.fetch_input.side_effect = OSError("disk")

        assert execute_job(job) == 2
