#!/usr/bin/env python3
"""
Runs an annotation job through its phases and maps failures to exit codes.
"""
from typing import Optional

from genebuild.core.context import ApplicationContext
from genebuild.core.logging_config import LoggingManager
from genebuild.error_handlers import handle_exceptions
from genebuild.jobs.base import AnnotationJob
from genebuild.jobs.factory import create_job

logger = LoggingManager.get_logger("genebuild.jobs.runner")


@handle_exceptions(exit_on_error=False)
def execute_job(job: AnnotationJob) -> int:
    """Fetch input, run and write output for a job

    Returns:
        0 on success, 1 for a genebuild error, 2 for an unexpected error
    """
    logger.info(f"Starting {job}")
    job.fetch_input()
    job.run()
    written = job.write_output()
    logger.info(f"Finished {job}: {written} results written")
    return 0


@handle_exceptions(exit_on_error=False)
def run_analysis(analysis_type: str, input_id: str, config_path: Optional[str] = None,
                 verbose: bool = False, log_file: Optional[str] = None,
                 context: Optional[ApplicationContext] = None, **collaborators) -> int:
    """Entry point for a scheduler: set up logging, build the job and execute it

    Args:
        analysis_type: 'pseudogene' or 'est_discrimination'
        input_id: Identifier of the job input
        config_path: Configuration file (ignored when a context is given)
        verbose: Enable debug logging
        log_file: Optional log file
        context: Pre-built application context
        **collaborators: Passed through to create_job

    Returns:
        Exit code of the job
    """
    context = context or ApplicationContext(config_path)
    LoggingManager.configure(verbose=verbose, log_file=log_file, component=analysis_type,
                             config=context.config)

    job = create_job(context, analysis_type, input_id, **collaborators)
    return execute_job(job)
