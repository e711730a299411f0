"""
Reactions live in their target's `reactions` collection, so additions and
removals go through the collection to keep loaded posts and comments in sync.
"""
from typing import Optional, Union
from sqlalchemy.ext.asyncio import AsyncSession

from newsfeed.models.comment import Comment
from newsfeed.models.post import Post
from newsfeed.models.reaction import Reaction

Target = Union[Post, Comment]


def find_reaction(target: Target, user_id: int, kind: str) -> Optional[Reaction]:
    for reaction in target.reactions:
        if reaction.user_id == user_id and reaction.kind == kind:
            return reaction
    return None


async def add_reaction(db: AsyncSession, target: Target, user_id: int, kind: str) -> Reaction:
    reaction = Reaction(user_id=user_id, kind=kind)
    target.reactions.append(reaction)
    await db.flush()
    return reaction


async def remove_reaction(db: AsyncSession, target: Target, reaction: Reaction) -> None:
    # delete-orphan cascade removes the row
    target.reactions.remove(reaction)
    await db.flush()
