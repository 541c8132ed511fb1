"""
커스텀 예외 클래스 및 FastAPI 예외 핸들러

모든 비즈니스 예외는 AppError를 상속하며,
HTTP 응답은 일관된 JSON 형식으로 반환됩니다.

응답 형식::

    {
        "error": {
            "code": "NOT_FOUND",
            "message": "요청한 리소스를 찾을 수 없습니다.",
            "detail": { ... }  // optional
        }
    }

알림 엔진 내부에서는 같은 계층을 사용해 오류를 분류합니다.
- PriceSourceError 계열: 일시적 시세 조회 오류 → 해당 키만 이번 사이클에서 건너뜀
- AlertStoreError: 저장소 장애 → 해당 작업만 실패
- NotificationError: 알림 채널 장애 → 로그만 남기고 트리거 상태는 유지
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


# ───────────────────────── Base ─────────────────────────


class AppError(Exception):
    """애플리케이션 최상위 예외"""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "서버 내부 오류가 발생했습니다."

    def __init__(
        self,
        message: str | None = None,
        *,
        detail: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.__class__.message
        self.detail = detail
        super().__init__(self.message)


# ───────────────────── API Errors ──────────────────────


class NotFoundError(AppError):
    """리소스를 찾을 수 없음 (404)"""

    status_code = 404
    code = "NOT_FOUND"
    message = "요청한 리소스를 찾을 수 없습니다."


class AuthenticationError(AppError):
    """사용자 식별 실패 (401)"""

    status_code = 401
    code = "UNAUTHORIZED"
    message = "사용자 식별 정보가 필요합니다."


# ───────────────────── Price Sources ───────────────────


class PriceSourceError(AppError):
    """거래소 시세 조회 오류 (502)"""

    status_code = 502
    code = "PRICE_SOURCE_ERROR"
    message = "거래소 시세 조회에 실패했습니다."


class SourceUnavailableError(PriceSourceError):
    """거래소 응답 불가 (503)"""

    status_code = 503
    code = "SOURCE_UNAVAILABLE"
    message = "거래소가 응답하지 않습니다."


class InvalidPairError(PriceSourceError):
    """거래소가 지원하지 않는 거래쌍 (400)"""

    status_code = 400
    code = "INVALID_PAIR"
    message = "거래소에서 지원하지 않는 거래쌍입니다."


class PriceSourceTimeoutError(PriceSourceError):
    """시세 조회 시간 초과 (504)"""

    status_code = 504
    code = "PRICE_SOURCE_TIMEOUT"
    message = "거래소 시세 조회 시간이 초과되었습니다."


# ───────────────────── Store / Notifier ────────────────


class AlertStoreError(AppError):
    """알림 저장소 오류 (503)"""

    status_code = 503
    code = "ALERT_STORE_ERROR"
    message = "알림 저장소를 사용할 수 없습니다."


class NotificationError(AppError):
    """알림 채널 전송 실패 (502)"""

    status_code = 502
    code = "CHANNEL_UNAVAILABLE"
    message = "알림 채널로 메시지를 전송하지 못했습니다."


class EngineBusyError(AppError):
    """이미 사이클이 실행 중 (409)"""

    status_code = 409
    code = "ENGINE_BUSY"
    message = "알림 평가 사이클이 이미 실행 중입니다."


# ──────────────────── Exception Handlers ────────────────


def _error_body(code: str, message: str, detail: Any = None) -> dict:
    body: dict[str, Any] = {"error": {"code": code, "message": message}}
    if detail is not None:
        body["error"]["detail"] = detail
    return body


async def app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    """AppError 계열 예외를 일관된 JSON으로 변환"""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.detail),
    )


async def unhandled_error_handler(
    _request: Request, _exc: Exception
) -> JSONResponse:
    """예상치 못한 예외에 대한 안전한 500 응답"""
    return JSONResponse(
        status_code=500,
        content=_error_body("INTERNAL_ERROR", "서버 내부 오류가 발생했습니다."),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """FastAPI 앱에 예외 핸들러를 등록합니다."""
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
