"""Database Models and Setup for the Paper Assistant API

SQLAlchemy models for users and their search history.
Uses SQLite for development, can be switched to PostgreSQL for production.

The engine is owned by an explicitly constructed ``Database`` handle that the
application creates at startup and disposes at shutdown.
"""

import logging
from datetime import datetime
from typing import Optional, List, Iterator, Sequence

from fastapi import Request
from sqlalchemy import create_engine, Column, Integer, String, DateTime, ForeignKey, Text, JSON, text
from sqlalchemy.orm import declarative_base, sessionmaker, relationship, Session

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


# ============================================================================
# DATABASE MODELS
# ============================================================================

class User(Base):
    """User account model."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)

    # Forwarded to the chat-completion provider, never generated here
    external_api_key = Column(String(500), nullable=False, default="")

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    queries = relationship("QueryRecord", back_populates="owner", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"


class QueryRecord(Base):
    """One search request and the papers it returned. Immutable once stored."""
    __tablename__ = "queries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    query = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    owner = relationship("User", back_populates="queries")
    results = relationship(
        "QueryResult",
        back_populates="query_record",
        cascade="all, delete-orphan",
        order_by="QueryResult.position",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<QueryRecord(id={self.id}, user_id={self.user_id})>"


class QueryResult(Base):
    """A paper inside a QueryRecord. Owned entirely by its record."""
    __tablename__ = "query_results"

    id = Column(Integer, primary_key=True, index=True)
    query_id = Column(Integer, ForeignKey("queries.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)

    title = Column(Text, nullable=False, default="")
    authors = Column(JSON, nullable=False, default=list)
    summary = Column(Text, nullable=False, default="")
    url = Column(String(500), nullable=False, default="")
    published_date = Column(String(64), nullable=False, default="")

    query_record = relationship("QueryRecord", back_populates="results")

    def __repr__(self):
        return f"<QueryResult(query_id={self.query_id}, position={self.position})>"


# ============================================================================
# DATABASE HANDLE
# ============================================================================

class Database:
    """Engine and session factory for one process.

    Construct once at startup, call ``init()`` to create tables, and
    ``dispose()`` at shutdown.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = create_engine(
            url,
            connect_args={"check_same_thread": False} if url.startswith("sqlite") else {},
            echo=echo  # Set to True for SQL debugging
        )
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def init(self):
        """Initialize database tables."""
        logger.info(f"Initializing database: {self.engine.url.render_as_string(hide_password=True)}")
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created successfully")

    def session(self) -> Session:
        return self._session_factory()

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning(f"Database ping failed: {e}")
            return False

    def dispose(self):
        logger.info("Disposing database engine")
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    """Get database session (dependency for FastAPI)."""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()


# ============================================================================
# CRUD OPERATIONS
# ============================================================================

class UserCRUD:
    """CRUD operations for User model."""

    @staticmethod
    def create(db: Session, email: str, password_hash: str) -> User:
        """Create a new user."""
        user = User(email=email, password_hash=password_hash, external_api_key="")
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID."""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email."""
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def set_api_key(db: Session, user: User, api_key: str) -> User:
        """Overwrite the stored external API key."""
        user.external_api_key = api_key
        db.commit()
        db.refresh(user)
        return user


class QueryCRUD:
    """CRUD operations for QueryRecord model."""

    @staticmethod
    def create(db: Session, user_id: int, query: str, results: Sequence[dict]) -> QueryRecord:
        """Store a query with its ordered results in one transaction.

        Each result dict carries title, authors, summary, url and published_date.
        """
        record = QueryRecord(user_id=user_id, query=query)
        for position, result in enumerate(results):
            record.results.append(QueryResult(
                position=position,
                title=result.get("title") or "",
                authors=list(result.get("authors") or []),
                summary=result.get("summary") or "",
                url=result.get("url") or "",
                published_date=result.get("published_date") or "",
            ))
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def recent_for_user(db: Session, user_id: int, limit: int = 10) -> List[QueryRecord]:
        """Most recent records for a user, newest first."""
        return (
            db.query(QueryRecord)
            .filter(QueryRecord.user_id == user_id)
            .order_by(QueryRecord.created_at.desc(), QueryRecord.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def count_for_user(db: Session, user_id: int) -> int:
        return db.query(QueryRecord).filter(QueryRecord.user_id == user_id).count()
