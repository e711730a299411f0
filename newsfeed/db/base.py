"""
Declarative base shared by every newsfeed table
"""
from datetime import datetime
from sqlalchemy import Column, Integer, DateTime, MetaData
from sqlalchemy.orm import declarative_base

# Unnamed indexes and constraints get the same names on sqlite and postgres
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))

class BaseModel(Base):
    """Integer id and creation time; rows are ordered newest first by created_at"""
    __abstract__ = True

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id}>"
