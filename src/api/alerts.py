"""
알림 API 라우터

사용자별 가격 알림 생성/조회 기능을 제공합니다.
요청 사용자는 X-User-Id 헤더로 식별합니다.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from src.alerts.store import AlertStore
from src.api.dependencies import get_store, get_user_id
from src.api.schemas import AlertCreateRequest, AlertResponse
from src.exceptions import NotFoundError
from src.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/alerts", tags=["Alerts"])


@router.post(
    "",
    response_model=AlertResponse,
    status_code=status.HTTP_201_CREATED,
    summary="알림 생성",
    description="가격 알림을 생성합니다. reference_price를 지정하면 기준가 알림이 됩니다.",
)
async def create_alert(
    req: AlertCreateRequest,
    user_id: str = Depends(get_user_id),
    store: AlertStore = Depends(get_store),
) -> AlertResponse:
    """알림 생성"""
    alert = await store.create_alert(req.to_new_alert(user_id))
    return AlertResponse.from_alert(alert)


@router.get(
    "",
    response_model=list[AlertResponse],
    summary="내 알림 목록 조회",
    description="요청 사용자의 알림을 최신순으로 조회합니다.",
)
async def list_alerts(
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user_id: str = Depends(get_user_id),
    store: AlertStore = Depends(get_store),
) -> list[AlertResponse]:
    """알림 목록 조회"""
    alerts = await store.list_user_alerts(user_id, limit=limit, offset=offset)
    return [AlertResponse.from_alert(alert) for alert in alerts]


@router.get(
    "/{alert_id}",
    response_model=AlertResponse,
    summary="알림 단일 조회",
    description="특정 ID의 알림을 조회합니다. 다른 사용자의 알림은 404로 응답합니다.",
)
async def get_alert(
    alert_id: int,
    user_id: str = Depends(get_user_id),
    store: AlertStore = Depends(get_store),
) -> AlertResponse:
    """알림 단일 조회"""
    alert = await store.get_alert(alert_id)
    if alert.user_id != user_id:
        raise NotFoundError(f"알림 ID {alert_id}를 찾을 수 없습니다.")
    return AlertResponse.from_alert(alert)
