"""Endpoints and websocket handler for alert delivery outcomes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from moodlog.domain.entities import User
from moodlog.domain.errors import InvalidSession, MoodlogError
from moodlog.infrastructure.database import get_db, session_scope
from moodlog.infrastructure.notifications import notification_manager, serialize_outcome
from moodlog.infrastructure.repositories import NotificationDeliveryRepository
from moodlog.interfaces.api.dependencies import get_current_user, get_session_manager
from moodlog.interfaces.api.schemas import DeliveryRead

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=list[DeliveryRead])
def list_deliveries(
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[DeliveryRead]:
    """Return the most recent alert deliveries for the authenticated user."""

    outcomes = NotificationDeliveryRepository(db).list_for_user(current_user.id, limit=limit)
    return [DeliveryRead.model_validate(outcome) for outcome in outcomes]


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams delivery outcomes to the session's user."""

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=1008)
        return

    try:
        session = get_session_manager().validate(token)
        with session_scope() as db:
            recent = NotificationDeliveryRepository(db).list_for_user(
                session.user_id, limit=20
            )
    except InvalidSession:
        await websocket.close(code=1008)
        return
    except MoodlogError:
        await websocket.close(code=1011)
        return

    user_id = session.user_id
    await notification_manager.connect(user_id, websocket)
    try:
        if recent:
            await websocket.send_json(
                {"type": "init", "data": [serialize_outcome(outcome) for outcome in recent]}
            )
        while True:
            message = await websocket.receive_json()
            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        notification_manager.disconnect(user_id, websocket)
    except Exception:
        notification_manager.disconnect(user_id, websocket)
        raise
