from typing import Iterable, Optional, Tuple, TYPE_CHECKING
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
import logging

from newsfeed.exceptions import ConflictError, NotFoundError
from newsfeed.repositories import comments as comment_repo
from newsfeed.repositories import posts as post_repo
from newsfeed.repositories import reactions as reaction_repo
from newsfeed.schemas.reaction_schema import (
    DislikeSummary,
    LikeSummary,
    ReactionKind,
    ReactionSummary,
)

if TYPE_CHECKING:
    from newsfeed.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)


def aggregate_reactions(reactions: Iterable, viewer_id: Optional[int] = None) -> ReactionSummary:
    """
    Tally a reaction list into per-kind counts plus the viewer's own state.

    Counts never depend on the viewer; an anonymous viewer has liked and
    disliked nothing.
    """
    likes = dislikes = 0
    liked = disliked = False
    for reaction in reactions or []:
        kind = reaction.kind
        if kind == ReactionKind.LIKE.value:
            likes += 1
            if viewer_id is not None and reaction.user_id == viewer_id:
                liked = True
        elif kind == ReactionKind.DISLIKE.value:
            dislikes += 1
            if viewer_id is not None and reaction.user_id == viewer_id:
                disliked = True

    return ReactionSummary(
        like=LikeSummary(count=likes, liked=liked),
        dislike=DislikeSummary(count=dislikes, disliked=disliked),
    )


class ReactionService:
    def __init__(self, db: AsyncSession, dispatcher: "Optional[NotificationDispatcher]" = None):
        self.db = db
        self.dispatcher = dispatcher

    async def toggle_reaction(
        self,
        actor_id: int,
        kind: ReactionKind,
        post_id: Optional[int] = None,
        comment_id: Optional[int] = None,
    ) -> Tuple[str, ReactionSummary]:
        """
        Add or remove the actor's reaction of `kind` on a post or comment.

        Returns ("added" | "removed", the target's new reaction summary).
        """
        kind = ReactionKind(kind)
        if post_id is not None:
            # a share pointer is reacted to through its original
            target = await post_repo.get_displayed_post(self.db, post_id)
            if not target:
                raise NotFoundError("Post not found")
            post_id = owning_post_id = target.id
        else:
            target = await comment_repo.get_comment(self.db, comment_id)
            if not target:
                raise NotFoundError("Comment not found")
            owning_post_id = target.post_id

        try:
            existing = reaction_repo.find_reaction(target, actor_id, kind.value)
            if existing:
                await reaction_repo.remove_reaction(self.db, target, existing)
                outcome = "removed"
            else:
                await reaction_repo.add_reaction(self.db, target, actor_id, kind.value)
                opposite = reaction_repo.find_reaction(target, actor_id, kind.opposite.value)
                if opposite:
                    await reaction_repo.remove_reaction(self.db, target, opposite)
                outcome = "added"
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning(
                f"Concurrent reaction toggle: user={actor_id}, post={post_id}, comment={comment_id}"
            )
            raise ConflictError("Reaction already being toggled")

        logger.info(
            f"Reaction {outcome}: user={actor_id}, kind={kind.value}, post={post_id}, comment={comment_id}"
        )

        if outcome == "added" and self.dispatcher:
            self.dispatcher.reaction_added(
                actor_id=actor_id,
                recipient_id=target.user_id,
                kind=kind.value,
                target_id=target.id,
                post_id=owning_post_id,
                on_comment=comment_id is not None,
            )

        return outcome, aggregate_reactions(target.reactions, actor_id)
