"""
Test that guardaio_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from guardaio_logging and use the logger."""
    from guardaio.guardaio_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_bind_job_logger():
    from guardaio.guardaio_logging import bind_job

    logger = bind_job("job-1")
    logger.info("test_bound_message", file_name="a.jpg")


def test_dispatch_imports_before_controller():
    """Dispatch layer imports cleanly on its own (no cycle through the controller)."""
    import guardaio.dispatch
    from guardaio.analysis_engine.controller import AnalysisController

    assert guardaio.dispatch.DefaultDispatcher is not None
    assert AnalysisController is not None
