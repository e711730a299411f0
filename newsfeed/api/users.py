from fastapi import APIRouter, Depends, HTTPException, status, Query, UploadFile, File, Form
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from newsfeed.api.deps import get_dispatcher
from newsfeed.db.session import get_db
from newsfeed.exceptions import ForbiddenError, NewsfeedError
from newsfeed.schemas.auth_schema import TokenData
from newsfeed.schemas.comment_schema import CommentResponse
from newsfeed.schemas.common_schema import ToggleResponse
from newsfeed.schemas.community_schema import CommunityResponse
from newsfeed.schemas.post_schema import PostResponse
from newsfeed.schemas.user_schema import AuthorProfile, UserDetailResponse, UserPersonalUpdate
from newsfeed.services.auth_service import get_current_user, get_optional_user
from newsfeed.services.notification_service import NotificationDispatcher
from newsfeed.services.user_service import UserService
from newsfeed.utils.file_upload import save_upload_files
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

def _viewer_id(current_user: Optional[TokenData]) -> Optional[int]:
    return current_user.user_id if current_user else None

def _server_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"{action} error: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action.lower()}"
    )

@router.put("/personal", response_model=UserDetailResponse)
async def update_personal_details(
    user_data: UserPersonalUpdate,
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update username, email, names, phone, gender or password"""
    try:
        user_service = UserService(db)
        return await user_service.update_personal(current_user.user_id, user_data)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        raise _server_error("Update personal details", e)

@router.put("/account", response_model=UserDetailResponse)
async def update_account_details(
    bio: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None),
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update bio, profile image and cover image"""
    try:
        image_urls = await save_upload_files([image] if image else [], folder="profiles")
        cover_urls = await save_upload_files([cover_image] if cover_image else [], folder="covers")

        user_service = UserService(db)
        return await user_service.update_account(
            current_user.user_id,
            bio=bio,
            image=image_urls[0] if image_urls else None,
            cover_image=cover_urls[0] if cover_urls else None,
        )
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        raise _server_error("Update account details", e)

@router.post("/follow/{username}", response_model=ToggleResponse)
async def toggle_follow(
    username: str,
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Follow a user, or unfollow them if already following"""
    try:
        user_service = UserService(db, dispatcher)
        outcome = await user_service.toggle_follow(current_user.user_id, username)
        return ToggleResponse(outcome=outcome, message=f"User {outcome}")
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        raise _server_error("Toggle follow", e)

@router.get("/{username}", response_model=UserDetailResponse)
async def get_user_profile(
    username: str,
    current_user: Optional[TokenData] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Profile with follower, followee, community and post counts"""
    try:
        user_service = UserService(db)
        return await user_service.get_profile(username, _viewer_id(current_user))
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        raise _server_error("Get user profile", e)

@router.get("/{username}/posts", response_model=List[PostResponse])
async def get_user_posts(
    username: str,
    pagination: int = Query(1, ge=1),
    current_user: Optional[TokenData] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        user_service = UserService(db)
        user = await user_service.get_user_by_username(username)
        return await user_service.retrieve_user_posts(
            user.id, detailed=True, pagination=pagination, viewer_id=_viewer_id(current_user)
        )
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        raise _server_error("Get user posts", e)

@router.get("/{username}/posts/like", response_model=List[PostResponse])
async def get_user_liked_posts(
    username: str,
    pagination: int = Query(1, ge=1),
    current_user: Optional[TokenData] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        user_service = UserService(db)
        user = await user_service.get_user_by_username(username)
        return await user_service.retrieve_user_liked_posts(
            user.id, detailed=True, pagination=pagination, viewer_id=_viewer_id(current_user)
        )
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        raise _server_error("Get liked posts", e)

@router.get("/{username}/posts/dislike", response_model=List[PostResponse])
async def get_user_disliked_posts(
    username: str,
    pagination: int = Query(1, ge=1),
    current_user: Optional[TokenData] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        user_service = UserService(db)
        user = await user_service.get_user_by_username(username)
        return await user_service.retrieve_user_disliked_posts(
            user.id, detailed=True, pagination=pagination, viewer_id=_viewer_id(current_user)
        )
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        raise _server_error("Get disliked posts", e)

@router.get("/{username}/posts/saved", response_model=List[PostResponse])
async def get_user_saved_posts(
    username: str,
    pagination: int = Query(1, ge=1),
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Saved posts are only visible to their owner"""
    try:
        user_service = UserService(db)
        user = await user_service.get_user_by_username(username)
        if user.id != current_user.user_id:
            raise ForbiddenError("Saved posts are private")
        return await user_service.retrieve_user_saved_posts(user.id, detailed=True, pagination=pagination)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        raise _server_error("Get saved posts", e)

@router.get("/{username}/comments/saved", response_model=List[CommentResponse])
async def get_user_saved_comments(
    username: str,
    pagination: int = Query(1, ge=1),
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        user_service = UserService(db)
        user = await user_service.get_user_by_username(username)
        if user.id != current_user.user_id:
            raise ForbiddenError("Saved comments are private")
        return await user_service.retrieve_user_saved_comments(user.id, detailed=True, pagination=pagination)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        raise _server_error("Get saved comments", e)

@router.get("/{username}/followers", response_model=List[AuthorProfile])
async def get_user_followers(
    username: str,
    pagination: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
):
    try:
        user_service = UserService(db)
        user = await user_service.get_user_by_username(username)
        return await user_service.retrieve_user_followers(user.id, detailed=True, pagination=pagination)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        raise _server_error("Get followers", e)

@router.get("/{username}/followees", response_model=List[AuthorProfile])
async def get_user_followees(
    username: str,
    pagination: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
):
    try:
        user_service = UserService(db)
        user = await user_service.get_user_by_username(username)
        return await user_service.retrieve_user_followees(user.id, detailed=True, pagination=pagination)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        raise _server_error("Get followees", e)

@router.get("/{username}/communities", response_model=List[CommunityResponse])
async def get_user_communities(
    username: str,
    pagination: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
):
    try:
        user_service = UserService(db)
        user = await user_service.get_user_by_username(username)
        return await user_service.retrieve_user_communities(user.id, detailed=True, pagination=pagination)
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        raise _server_error("Get user communities", e)
