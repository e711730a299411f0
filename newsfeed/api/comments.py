from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from newsfeed.api.deps import get_dispatcher
from newsfeed.db.session import get_db
from newsfeed.exceptions import NewsfeedError
from newsfeed.schemas.auth_schema import TokenData
from newsfeed.schemas.comment_schema import CommentCreate, CommentResponse, CommentUpdate
from newsfeed.services.auth_service import get_current_user, get_optional_user
from newsfeed.services.comment_service import CommentService
from newsfeed.services.notification_service import NotificationDispatcher
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    comment_data: CommentCreate,
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Comment on a post or reply to a comment"""
    try:
        comment_service = CommentService(db, dispatcher)
        return await comment_service.create_comment(current_user.user_id, comment_data)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Create comment error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create comment"
        )

@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: int,
    comment_data: CommentUpdate,
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Edit a comment"""
    try:
        comment_service = CommentService(db)
        return await comment_service.edit_comment(current_user.user_id, comment_id, comment_data.content)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Update comment error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update comment"
        )

@router.get("/{comment_id}", response_model=CommentResponse)
async def get_comment(
    comment_id: int,
    current_user: Optional[TokenData] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a comment with its replies"""
    try:
        comment_service = CommentService(db)
        viewer_id = current_user.user_id if current_user else None
        return await comment_service.get_comment(comment_id, viewer_id)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Get comment error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get comment"
        )
