from fastapi import BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from newsfeed.db.session import get_session_factory
from newsfeed.services.notification_service import NotificationDispatcher

def get_dispatcher(
    background_tasks: BackgroundTasks,
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> NotificationDispatcher:
    """Notification dispatcher bound to the current request's background tasks"""
    return NotificationDispatcher(background_tasks, session_factory)
