import logging

from wedding_kb.exception.custom_exception import (
    EmbeddingError,
    KnowledgeBaseException,
    ValidationError,
)
from wedding_kb.logger.custom_logger import CustomLogger


def test_structured_logger_renders_key_values(caplog):
    log = CustomLogger().get_logger("wedding_kb.test")
    caplog.set_level(logging.INFO, logger="wedding_kb.test")

    log.info("Chunk stored", file="ep1.pdf", chunk=3)

    assert caplog.records[-1].getMessage() == "Chunk stored | file=ep1.pdf | chunk=3"


def test_structured_logger_keeps_percent_args_and_binds_context(caplog):
    log = CustomLogger().get_logger("wedding_kb.test").bind(request="r1")
    caplog.set_level(logging.INFO, logger="wedding_kb.test")

    log.warning("Stored %s rows", 4, table="wedding_vendors")

    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert record.getMessage() == "Stored 4 rows | table=wedding_vendors | request=r1"


def test_exception_records_cause_location_and_details():
    try:
        {}["missing"]
    except KeyError as e:
        err = EmbeddingError("Embedding request failed", e)

    assert err.error_message == "Embedding request failed"
    assert err.details == "'missing'"
    assert err.file_name.endswith("test_logging_and_errors.py")
    assert err.lineno > 0
    assert "KeyError" in err.traceback_str
    assert "Embedding request failed" in str(err)


def test_exception_without_cause_has_no_traceback():
    err = ValidationError("No files provided")

    assert err.status_code == 400
    assert err.details is None
    assert err.traceback_str == ""
    assert KnowledgeBaseException("boom").status_code == 500
