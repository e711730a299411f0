from fastapi import APIRouter, Depends, HTTPException, status, Query, UploadFile, File, Form
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from newsfeed.api.deps import get_dispatcher
from newsfeed.db.session import get_db
from newsfeed.exceptions import NewsfeedError
from newsfeed.schemas.auth_schema import TokenData
from newsfeed.schemas.common_schema import MessageResponse
from newsfeed.schemas.post_schema import PostCreatedResponse, PostResponse, PostUpdate, VisibilityMode
from newsfeed.services.auth_service import get_current_user, get_optional_user
from newsfeed.services.notification_service import NotificationDispatcher
from newsfeed.services.post_service import PostService
from newsfeed.utils.file_upload import save_upload_files
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("", response_model=PostCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    content: str = Form(..., min_length=1),
    visibility_mode: VisibilityMode = Form(VisibilityMode.ALL),
    community_id: Optional[int] = Form(None),
    topic: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Create a new post"""
    try:
        file_urls = await save_upload_files(images or [], folder="posts")

        post_service = PostService(db, dispatcher)
        post = await post_service.create_post(
            current_user.user_id,
            content=content,
            visibility_mode=visibility_mode,
            community_id=community_id,
            topic=topic,
            file_urls=file_urls,
        )
        return PostCreatedResponse(id=post.id)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Create post error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create post"
        )

@router.get("", response_model=List[PostResponse])
async def get_posts(
    pagination: int = Query(1, ge=1),
    topics: Optional[List[str]] = Query(None),
    current_user: Optional[TokenData] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Public posts, newest first"""
    try:
        post_service = PostService(db)
        viewer_id = current_user.user_id if current_user else None
        return await post_service.list_posts(pagination, topics, viewer_id)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Get posts error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get posts"
        )

@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: int,
    current_user: Optional[TokenData] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a post with its comments"""
    try:
        post_service = PostService(db)
        viewer_id = current_user.user_id if current_user else None
        return await post_service.get_post(post_id, viewer_id)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Get post error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get post"
        )

@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: int,
    post_data: PostUpdate,
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update a post"""
    try:
        post_service = PostService(db)
        return await post_service.update_post(current_user.user_id, post_id, post_data)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Update post error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update post"
        )

@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: int,
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a post"""
    try:
        post_service = PostService(db)
        await post_service.delete_post(current_user.user_id, post_id)
        return {"message": "Post deleted successfully"}
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Delete post error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete post"
        )
