from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from newsfeed.api.deps import get_dispatcher
from newsfeed.db.session import get_db
from newsfeed.exceptions import NewsfeedError
from newsfeed.schemas.auth_schema import TokenData
from newsfeed.schemas.post_schema import ShareRequest, ShareToggleResponse
from newsfeed.services.auth_service import get_current_user
from newsfeed.services.notification_service import NotificationDispatcher
from newsfeed.services.share_service import ShareService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("", response_model=ShareToggleResponse)
async def toggle_share(
    share_data: ShareRequest,
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Share a post, or undo an earlier share of it"""
    try:
        share_service = ShareService(db, dispatcher)
        outcome, pointer = await share_service.toggle_share(current_user.user_id, share_data.post_id)
        return ShareToggleResponse(
            outcome=outcome,
            message=f"Post {outcome}",
            post_id=pointer.id if pointer else None,
        )
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Toggle share error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to toggle share"
        )
