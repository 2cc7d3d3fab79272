"""
Structured logging for Guardaio.

JSON logs with timestamp, job_id, event_type.
Use get_logger() in all modules for aggregation-friendly output.
"""

from guardaio.guardaio_logging.logger import bind_job, get_logger

__all__ = ["bind_job", "get_logger"]
