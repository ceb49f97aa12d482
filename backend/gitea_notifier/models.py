"""SQLAlchemy models for the Gitea Slack notifier."""

from datetime import datetime
from sqlalchemy import create_engine, Column, String, Integer, DateTime
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import get_settings

settings = get_settings()
engine = create_engine(settings.database_url, echo=settings.env == "development")
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


class PullRequestThread(Base):
    """Slack thread that notifications for a pull request are posted under."""

    __tablename__ = "pull_request_threads"

    repository = Column(String, primary_key=True)  # "owner/name"
    pull_request_url = Column(String, primary_key=True)  # PR page (html_url)
    pull_request_id = Column(Integer)  # id of the event that opened the thread
    thread_ts = Column(String, nullable=False)  # Slack message timestamp
    created_at = Column(DateTime, default=datetime.utcnow)


def init_db():
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine)


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
