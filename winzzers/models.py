"""
Database models for the Winzzers metadata store
SQLAlchemy ORM; SQLite by default, any SQLAlchemy URL via DATABASE_URL
"""

from sqlalchemy import create_engine, Column, String, Text
from sqlalchemy.orm import declarative_base, sessionmaker
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./winzzers.db")

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, pool_pre_ping=True, echo=False, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def metadata_key(market_id: int) -> str:
    """Hash key under which a market's metadata is stored."""
    return f"market:meta:{market_id}"


class MarketMetadataRecord(Base):
    """
    Off-chain title/description/tags for one market.

    Every field is stored as text, mirroring a key-value hash: ``tags`` is a
    JSON-encoded list and ``created_at`` is epoch milliseconds as a string.
    """

    __tablename__ = "market_metadata"

    key = Column(String, primary_key=True)  # market:meta:<id>
    market_id = Column(String, nullable=False, unique=True, index=True)  # decimal text, any size
    title = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    tags = Column(Text, nullable=False, default="[]")
    created_at = Column(String, nullable=False)

    def to_hash(self) -> dict:
        return {
            "marketId": self.market_id,
            "title": self.title,
            "description": self.description,
            "tags": self.tags,
            "createdAt": self.created_at,
        }
