"""
에러 재시도 유틸리티 — Exponential Backoff + Jitter

알림 채널(Discord Webhook 등) 전송처럼 채널 내부에서 재시도가 허용되는
비동기 호출에 사용합니다. 거래소 시세 어댑터는 재시도하지 않습니다.

Usage::

    @async_retry(max_retries=2, base_delay=0.5, retryable=(httpx.TransportError,))
    async def post_webhook():
        ...
"""

from __future__ import annotations

import asyncio
import functools
import random
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from src.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RetryExhaustedError(Exception):
    """모든 재시도가 소진된 경우 발생하는 예외

    Attributes:
        attempts: 총 시도 횟수
        last_exception: 마지막으로 발생한 예외
    """

    def __init__(
        self,
        message: str,
        *,
        attempts: int,
        last_exception: Exception | None = None,
    ) -> None:
        self.attempts = attempts
        self.last_exception = last_exception
        super().__init__(message)


def _calculate_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    jitter: bool,
) -> float:
    """base_delay * 2^attempt (max_delay 상한), jitter면 [0, delay] 균등 분포"""
    delay = min(base_delay * (2 ** attempt), max_delay)
    if jitter:
        delay = random.uniform(0, delay)  # noqa: S311
    return delay


def async_retry(
    max_retries: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 30.0,
    jitter: bool = True,
    retryable: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """비동기 함수용 재시도 데코레이터

    Args:
        max_retries: 최대 재시도 횟수 (0이면 한 번만 시도)
        base_delay: 기본 지연 시간 (초)
        max_delay: 최대 지연 시간 (초)
        jitter: True이면 랜덤 jitter 추가
        retryable: 재시도할 예외 타입 튜플 (그 외 예외는 즉시 전파)

    Raises:
        RetryExhaustedError: 모든 재시도가 실패한 경우
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except retryable as e:
                    if attempt >= max_retries:
                        logger.warning(
                            "재시도 소진: %s (총 %d회 시도, 마지막 에러: %s)",
                            func.__name__,
                            attempt + 1,
                            e,
                        )
                        raise RetryExhaustedError(
                            f"{func.__name__}: {max_retries}회 재시도 후에도 실패",
                            attempts=attempt + 1,
                            last_exception=e,
                        ) from e

                    delay = _calculate_delay(attempt, base_delay, max_delay, jitter)
                    logger.info(
                        "재시도 %d/%d: %s (에러: %s, %.2f초 후 재시도)",
                        attempt + 1,
                        max_retries,
                        func.__name__,
                        e,
                        delay,
                    )
                    attempt += 1
                    await asyncio.sleep(delay)

        return wrapper

    return decorator
