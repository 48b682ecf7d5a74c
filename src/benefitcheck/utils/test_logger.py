import logging

from benefitcheck.utils.logger import REDACTED, logger


def test_extra_kwargs_become_fields():
    msg, kwargs = logger.process("hello", {"patient_id": "p-1", "count": 2})

    assert msg == "hello"
    assert kwargs == {"extra": {"patient_id": "p-1", "count": 2}}


def test_phi_fields_are_redacted():
    _, kwargs = logger.process(
        "reveal", {"field": "ssn", "ssn": "123-45-6789", "value": "1985-03-22"}
    )

    assert kwargs["extra"] == {"field": "ssn", "ssn": REDACTED, "value": REDACTED}


def test_logging_keywords_are_not_fields():
    _, kwargs = logger.process("boom", {"exc_info": True, "stacklevel": 2})

    assert kwargs == {"exc_info": True, "stacklevel": 2}


def test_redacted_value_never_reaches_records(caplog):
    with caplog.at_level(logging.INFO, logger="benefitcheck"):
        logger.info("[Test] Reveal", email="maria@example.com")

    [record] = [r for r in caplog.records if r.getMessage() == "[Test] Reveal"]
    assert record.email == REDACTED
    assert "maria@example.com" not in caplog.text
