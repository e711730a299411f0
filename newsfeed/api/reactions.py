from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from newsfeed.api.deps import get_dispatcher
from newsfeed.db.session import get_db
from newsfeed.exceptions import NewsfeedError
from newsfeed.schemas.auth_schema import TokenData
from newsfeed.schemas.reaction_schema import ReactionToggleRequest, ReactionToggleResponse
from newsfeed.services.auth_service import get_current_user
from newsfeed.services.notification_service import NotificationDispatcher
from newsfeed.services.reaction_service import ReactionService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.put("", response_model=ReactionToggleResponse)
async def toggle_reaction(
    reaction_data: ReactionToggleRequest,
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Like or dislike a post or comment; repeating the same reaction removes it"""
    try:
        reaction_service = ReactionService(db, dispatcher)
        outcome, reactions = await reaction_service.toggle_reaction(
            current_user.user_id,
            reaction_data.reaction,
            post_id=reaction_data.post_id,
            comment_id=reaction_data.comment_id,
        )
        return ReactionToggleResponse(
            outcome=outcome,
            message=f"Reaction {outcome}",
            reactions=reactions,
        )
    except (HTTPException, NewsfeedError):
        raise
    except Exception as e:
        logger.error(f"Toggle reaction error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to toggle reaction"
        )
