from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from newsfeed.db.session import get_db
from newsfeed.exceptions import NewsfeedError
from newsfeed.schemas.auth_schema import TokenData
from newsfeed.schemas.bookmark_schema import BookmarkResponse, BookmarkToggleRequest, BookmarkToggleResponse
from newsfeed.services.auth_service import get_current_user
from newsfeed.services.bookmark_service import BookmarkService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("", response_model=BookmarkToggleResponse)
async def toggle_bookmark(
    bookmark_data: BookmarkToggleRequest,
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Bookmark a post or comment, or remove the existing bookmark"""
    try:
        bookmark_service = BookmarkService(db)
        outcome, bookmark = await bookmark_service.toggle_bookmark(
            current_user.user_id,
            post_id=bookmark_data.post_id,
            comment_id=bookmark_data.comment_id,
        )
        return BookmarkToggleResponse(
            outcome=outcome,
            message=f"Bookmark {outcome}",
            bookmark=BookmarkResponse.model_validate(bookmark) if bookmark else None,
        )
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Toggle bookmark error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to toggle bookmark"
        )

@router.get("", response_model=List[BookmarkResponse])
async def get_bookmarks(
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's bookmarks, newest first"""
    try:
        bookmark_service = BookmarkService(db)
        return await bookmark_service.list_bookmarks(current_user.user_id)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Get bookmarks error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get bookmarks"
        )
