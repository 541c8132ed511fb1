"""
알림 전송 패키지

트리거된 가격 알림의 메시지 렌더링과 전송 채널(Discord, 로그)을 제공합니다.
"""

from __future__ import annotations

__all__ = [
    "DiscordNotifier",
    "LogNotifier",
    "Notifier",
    "build_notifier",
    "render_alert_message",
]

from src.notification.discord_notifier import DiscordNotifier
from src.notification.message import render_alert_message
from src.notification.notifier import LogNotifier, Notifier, build_notifier
