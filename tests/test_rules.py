import logging

import pytest

from vmf_decompiler.validation.core import BrushOutcome, Severity, SideFailure
from vmf_decompiler.validation.rules import BRUSH_002, SIDE_003, brush_rule, side_rule

logger = logging.getLogger("vmf_decompiler.tests.rules")


def test_every_failure_has_a_rule():
    for failure in SideFailure:
        assert side_rule(failure).severity is Severity.DEBUG
    assert brush_rule(BrushOutcome.INVALID).severity is Severity.WARN
    assert brush_rule(BrushOutcome.UNCOMPILABLE) is BRUSH_002


def test_severity_maps_to_log_level():
    assert Severity.DEBUG.log_level == logging.DEBUG
    assert Severity.WARN.log_level == logging.WARNING


def test_log_uses_rule_severity(caplog):
    with caplog.at_level(logging.DEBUG, logger=logger.name):
        SIDE_003.log(logger, side=2, brush=7)

    (record,) = caplog.records
    assert record.levelno == logging.DEBUG
    assert record.getMessage() == "SIDE-003: Skipped side 2 of brush 7: too big"


def test_escalated_log_carries_remediation(caplog):
    with caplog.at_level(logging.DEBUG, logger=logger.name):
        SIDE_003.log(logger, escalate=True, side=2, brush=7)
        BRUSH_002.log(logger, escalate=True, brush=7)

    side_record, brush_record = caplog.records
    assert side_record.levelno == logging.WARNING
    assert side_record.getMessage().endswith("(Raise max_coord if the map legitimately exceeds the default extent)")
    assert brush_record.levelno == logging.WARNING
    assert "can't be compiled" in brush_record.getMessage()


@pytest.mark.parametrize("failure", list(SideFailure))
def test_side_messages_format(failure):
    message = side_rule(failure).format_message(side=0, brush=1, detail="(0, 0, 0)")
    assert message.startswith("Skipped side 0 of brush 1")
