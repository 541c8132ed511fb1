"""
로깅 설정

JSON 포맷 로깅을 지원하며, 환경변수로 로그 레벨을 조정할 수 있습니다.
`extra=` 로 넘긴 컨텍스트 필드(market, pair, alert_id 등)는 JSON 로그에 함께 기록됩니다.
"""

import json
import logging
import sys
from datetime import UTC, datetime

from config.settings import settings

# JSON 로그에 그대로 실어 보낼 extra 필드
CONTEXT_FIELDS = ("cycle_id", "market", "pair", "alert_id", "user_id")


class JSONFormatter(logging.Formatter):
    """JSON 포맷 로그 포매터"""

    def format(self, record: logging.LogRecord) -> str:
        """로그 레코드를 JSON 형식으로 변환"""
        log_data = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = str(value)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


def get_logger(name: str) -> logging.Logger:
    """
    로거 인스턴스 생성

    Args:
        name: 로거 이름 (보통 __name__ 사용)

    Returns:
        설정된 로거 인스턴스
    """
    logger = logging.getLogger(name)

    # 이미 핸들러가 설정되어 있으면 중복 방지
    if logger.handlers:
        return logger

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    if settings.app_env == "production":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    logger.addHandler(handler)
    return logger
