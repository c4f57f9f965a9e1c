import logging

import pytest

from tacmap.logging_config import setup_logging


@pytest.fixture
def tacmap_logger():
    yield logging.getLogger("tacmap")
    log = logging.getLogger("tacmap")
    for h in list(log.handlers):
        log.removeHandler(h)
        h.close()
    log.setLevel(logging.NOTSET)


def test_repeated_setup_does_not_stack_handlers(tacmap_logger):
    setup_logging(logging.INFO)
    setup_logging(logging.WARNING)
    assert len(tacmap_logger.handlers) == 1
    assert tacmap_logger.level == logging.WARNING


def test_log_file_receives_records(tacmap_logger, tmp_path):
    path = tmp_path / "tacmap.log"
    setup_logging(logging.DEBUG, str(path))
    logging.getLogger("tacmap.engine").info("selected EAGLE-1")
    for h in tacmap_logger.handlers:
        h.flush()
    text = path.read_text(encoding="utf-8")
    assert "tacmap.engine - INFO - selected EAGLE-1" in text
