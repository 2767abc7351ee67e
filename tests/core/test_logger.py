"""Tests for the service logger setup."""

from loguru import logger

from unit_calendar.core.logger import setup_logger


def test_file_sink_tags_lines_with_job(tmp_path):
    log_file = tmp_path / "logs" / "calendar.log"
    setup_logger(level="DEBUG", log_file=str(log_file))
    try:
        logger.info("[STATUS] request line")
        with logger.contextualize(job="recurring_training_processing"):
            logger.info("[SCHEDULER] job line")
    finally:
        setup_logger()

    lines = log_file.read_text().splitlines()
    request_line = next(line for line in lines if "request line" in line)
    job_line = next(line for line in lines if "job line" in line)
    assert "| - |" in request_line
    assert "| recurring_training_processing |" in job_line


def test_level_filters_file_sink(tmp_path):
    log_file = tmp_path / "calendar.log"
    setup_logger(level="WARNING", log_file=str(log_file))
    try:
        logger.info("[STATUS] hidden")
        logger.warning("[AUTH] shown")
    finally:
        setup_logger()

    content = log_file.read_text()
    assert "hidden" not in content
    assert "shown" in content
