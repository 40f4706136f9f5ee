import io
import logging

import pytest

from voxelstructure.logging_config import setup_logging


@pytest.fixture
def logger_name():
    name = "voxelstructure.session_log"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


def test_console_output_uses_stream_and_level(logger_name):
    stream = io.StringIO()
    logger = setup_logging(level=logging.WARNING, name=logger_name, stream=stream)

    logger.info("hidden")
    logger.warning("structure unstable")

    output = stream.getvalue()
    assert "hidden" not in output
    assert f"{logger_name} - WARNING - structure unstable" in output


def test_repeated_setup_does_not_duplicate_lines(logger_name):
    stream = io.StringIO()
    setup_logging(name=logger_name, stream=stream)
    logger = setup_logging(name=logger_name, stream=stream)

    logger.info("once")
    assert stream.getvalue().count("once") == 1
    assert len(logger.handlers) == 1


def test_log_file_receives_records(logger_name, tmp_path):
    path = tmp_path / "session.log"
    logger = setup_logging(name=logger_name, log_file=str(path), stream=io.StringIO())

    logger.info("written to file")
    for handler in logger.handlers:
        handler.flush()
    assert "written to file" in path.read_text(encoding="utf-8")
