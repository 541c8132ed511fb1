"""
Discord 알림 모듈

Discord Webhook을 통해 트리거된 가격 알림을 전송합니다.
연결 오류는 채널 내부에서 재시도하고, 끝내 실패하면 NotificationError를 발생시킵니다.
"""

from __future__ import annotations

from typing import Any

import httpx

from src.alerts.models import AlertDirection, AlertPayload
from src.exceptions import NotificationError
from src.notification.message import (
    format_delta,
    format_price,
    render_alert_message,
    render_title,
)
from src.utils.logger import get_logger
from src.utils.retry import RetryExhaustedError, async_retry

logger = get_logger(__name__)

COLOR_UP = 0x00FF00
COLOR_DOWN = 0xFF0000


class DiscordNotifier:
    """Discord Webhook 알림기"""

    def __init__(
        self,
        webhook_url: str,
        *,
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_base_delay: float = 0.5,
    ) -> None:
        """
        Args:
            webhook_url: Discord Webhook URL
            timeout: 요청 한 번의 제한 시간 (초)
            max_retries: 연결 오류 시 재시도 횟수
            retry_base_delay: 재시도 기본 지연 (초)
        """
        self.webhook_url = webhook_url
        self.request_timeout = timeout
        self._post = async_retry(
            max_retries=max_retries,
            base_delay=retry_base_delay,
            retryable=(httpx.TransportError,),
        )(self._post_once)

    async def notify(self, user_id: str, payload: AlertPayload) -> None:
        """
        트리거된 알림을 Discord로 전송합니다.

        Args:
            user_id: 알림 소유 사용자 ID
            payload: 평가 결과 payload

        Raises:
            NotificationError: 전송 실패 (재시도 소진 또는 오류 응답)
        """
        if not self.webhook_url:
            raise NotificationError("Discord Webhook URL이 설정되지 않았습니다.")

        body = {"embeds": [self._build_alert_embed(user_id, payload)]}

        try:
            await self._post(body)
        except RetryExhaustedError as e:
            raise NotificationError(
                "Discord 연결 실패",
                detail={"alert_id": payload.alert_id, "attempts": e.attempts},
            ) from e
        except httpx.HTTPStatusError as e:
            raise NotificationError(
                f"Discord 오류 응답 (HTTP {e.response.status_code})",
                detail={"alert_id": payload.alert_id},
            ) from e

        logger.info(
            "Discord 알림 전송 완료: 알림 ID=%s, %s:%s",
            payload.alert_id,
            payload.market,
            payload.pair,
        )

    async def _post_once(self, body: dict[str, Any]) -> None:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                self.webhook_url,
                json=body,
                timeout=self.request_timeout,
            )
            response.raise_for_status()

    def _build_alert_embed(self, user_id: str, payload: AlertPayload) -> dict[str, Any]:
        """알림 Embed 생성"""
        fields = [
            {"name": "거래소", "value": payload.market, "inline": True},
            {"name": "현재가", "value": format_price(payload.observed_price), "inline": True},
            {"name": "목표가", "value": format_price(payload.target_price), "inline": True},
        ]

        if payload.reference_price is not None and payload.delta_percent is not None:
            fields.append({
                "name": "매입가 대비",
                "value": (
                    f"{format_price(payload.reference_price)} → "
                    f"{format_delta(payload.delta_percent)}"
                ),
                "inline": False,
            })

        if payload.delta_percent is not None:
            rising = payload.delta_percent >= 0
        else:
            rising = payload.direction == AlertDirection.GREATER_THAN_OR_EQUAL

        return {
            "title": f"{'📈' if rising else '📉'} {render_title(payload)}",
            "description": render_alert_message(payload),
            "color": COLOR_UP if rising else COLOR_DOWN,
            "fields": fields,
            "footer": {"text": f"user {user_id} · alert #{payload.alert_id}"},
            "timestamp": payload.observed_at.isoformat(),
        }
