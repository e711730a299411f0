from fastapi import APIRouter, Depends, HTTPException, status, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import json
import logging

from newsfeed.db.session import get_db
from newsfeed.exceptions import NewsfeedError
from newsfeed.schemas.auth_schema import TokenData
from newsfeed.schemas.common_schema import MessageResponse
from newsfeed.schemas.notification_schema import NotificationResponse
from newsfeed.services.auth_service import get_current_user, get_optional_user
from newsfeed.services.notification_service import NotificationService
from newsfeed.websocket.manager import ws_manager

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("", response_model=List[NotificationResponse])
async def get_notifications(
    pagination: int = Query(1, ge=1),
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get user's notifications, newest first"""
    try:
        service = NotificationService(db)
        return await service.list_notifications(current_user.user_id, pagination)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Error getting notifications: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get notifications"
        )

@router.put("/read-all", response_model=MessageResponse)
async def mark_all_as_read(
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark all notifications as read"""
    try:
        service = NotificationService(db)
        updated = await service.mark_all_read(current_user.user_id)
        return {"message": f"Marked {updated} notifications as read"}
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Error marking all notifications as read: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to mark notifications as read"
        )

@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_as_read(
    notification_id: int,
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark a notification as read"""
    try:
        service = NotificationService(db)
        return await service.mark_read(current_user.user_id, notification_id)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Error marking notification as read: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to mark notification as read"
        )

@router.websocket("/ws")
async def websocket_notifications(
    websocket: WebSocket,
    current_user: Optional[TokenData] = Depends(get_optional_user),
):
    """WebSocket endpoint for real-time notifications"""
    if current_user is None:
        await websocket.close(code=1008)  # Policy violation
        return

    user_id = current_user.user_id
    await ws_manager.connect(user_id, websocket)
    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except ValueError:
                continue

            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_text(json.dumps({
                    "type": "pong",
                    "data": {"timestamp": message.get("timestamp")}
                }))
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for user {user_id}")
    finally:
        await ws_manager.disconnect(user_id, websocket)
