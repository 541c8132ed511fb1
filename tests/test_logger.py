"""로깅 설정 테스트"""

import json
import logging

from src.utils.logger import JSONFormatter, get_logger


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="src.engine.orchestrator",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="알림 트리거: ID=%s",
        args=(7,),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "src.engine.orchestrator"
        assert data["message"] == "알림 트리거: ID=7"
        assert "alert_id" not in data

    def test_context_fields(self):
        data = json.loads(
            JSONFormatter().format(_record(alert_id=7, market="BITSO", pair="BTC_MXN"))
        )

        assert data["alert_id"] == "7"
        assert data["market"] == "BITSO"
        assert data["pair"] == "BTC_MXN"


def test_get_logger_does_not_duplicate_handlers():
    first = get_logger("tests.logger.sample")
    second = get_logger("tests.logger.sample")

    assert first is second
    assert len(second.handlers) == 1
