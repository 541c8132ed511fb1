"""
설정 패키지

환경변수 기반 설정을 구조화하여 관리합니다.
- settings: 앱/DB/알림 엔진 설정
"""

from __future__ import annotations

from config.settings import Settings, settings

__all__ = ["Settings", "settings"]
