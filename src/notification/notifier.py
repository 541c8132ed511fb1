"""
알림 채널 계약

알림 엔진은 클레임에 성공한 알림마다 Notifier.notify를 최대 한 번 호출합니다.
전송 실패는 NotificationError로 알리며, 엔진은 이를 로그로만 남깁니다.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from config.settings import Settings
from src.alerts.models import AlertPayload
from src.notification.discord_notifier import DiscordNotifier
from src.notification.message import render_alert_message
from src.utils.logger import get_logger

logger = get_logger(__name__)


@runtime_checkable
class Notifier(Protocol):
    """알림 전송 채널"""

    async def notify(self, user_id: str, payload: AlertPayload) -> None:
        """전송 실패 시 NotificationError"""
        ...


class LogNotifier:
    """로그로만 알림을 남기는 채널 (웹훅 미설정 시 기본값)"""

    async def notify(self, user_id: str, payload: AlertPayload) -> None:
        logger.info(
            "알림 (사용자=%s): %s",
            user_id,
            render_alert_message(payload).replace("\n", " / "),
            extra={"user_id": user_id, "alert_id": payload.alert_id},
        )


def build_notifier(config: Settings) -> Notifier:
    """설정에 맞는 알림 채널 생성"""
    if config.discord_webhook_url:
        # 요청당 제한 시간 × 시도 횟수 = notify 제한 시간
        return DiscordNotifier(
            webhook_url=config.discord_webhook_url,
            timeout=config.notify_timeout_seconds / (config.notify_max_retries + 1),
            max_retries=config.notify_max_retries,
        )

    logger.warning("Discord Webhook URL이 설정되지 않아 로그 알림을 사용합니다.")
    return LogNotifier()
