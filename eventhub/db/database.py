"""
Database connection and session management for EventHub.
Provides the repositories used by the identity store, category registry,
event catalog and attendance ledger.
"""

import logging
from datetime import date
from typing import Generator, Iterable, List, Optional, Dict, Any
from sqlalchemy import create_engine, text, func, or_, update, select
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..models import Base, User, Category, Event, EventAttendee
from ..models.base import utcnow

logger = logging.getLogger(__name__)

# Primary keys are 32-bit signed integers on every supported backend
MAX_ID = 2**31 - 1


def valid_id(value: int) -> bool:
    """Whether ``value`` can name a stored row at all."""
    return 1 <= value <= MAX_ID


def _substring_pattern(term: str) -> str:
    """Build a LIKE pattern matching ``term`` literally anywhere in a value."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class DatabaseConnection:
    """
    Database connection manager for EventHub.
    Handles connection pooling and session management.
    """

    def __init__(self):
        self.engine = None
        self.SessionLocal = None
        self._initialized = False

    def initialize(self, database_url: str, pool_config: Optional[Dict[str, int]] = None):
        """
        Initialize database connection.

        Args:
            database_url: Database connection URL
            pool_config: Pool sizing for server databases; ignored for SQLite
        """
        try:
            if database_url.startswith("sqlite"):
                # A single shared connection keeps in-memory databases alive
                self.engine = create_engine(
                    database_url,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                    echo=False
                )
            else:
                pool_config = pool_config or {}
                self.engine = create_engine(
                    database_url,
                    pool_pre_ping=True,
                    pool_size=pool_config.get("pool_size", 10),
                    max_overflow=pool_config.get("max_overflow", 20),
                    pool_timeout=pool_config.get("pool_timeout", 30),
                    pool_recycle=pool_config.get("pool_recycle", 3600),
                    echo=False
                )

            self.SessionLocal = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=self.engine
            )

            self._initialized = True
            logger.info("Database connection initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database connection: {e}")
            raise

    def get_session(self) -> Generator[Session, None, None]:
        """
        Get database session.

        Yields:
            SQLAlchemy database session
        """
        if not self._initialized:
            raise RuntimeError("Database not initialized")

        session = self.SessionLocal()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_tables(self):
        """Create all database tables."""
        if not self._initialized:
            raise RuntimeError("Database not initialized")

        try:
            Base.metadata.create_all(bind=self.engine)
            logger.info("Database tables created successfully")
        except Exception as e:
            logger.error(f"Failed to create database tables: {e}")
            raise

    def health_check(self) -> bool:
        """
        Check database health.

        Returns:
            True if database is healthy
        """
        if not self._initialized:
            return False

        try:
            session = self.SessionLocal()
            try:
                session.execute(text("SELECT 1"))
                return True
            finally:
                session.close()
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    def close(self):
        """Dispose the engine and its pooled connections."""
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Database connections closed")
        self._initialized = False


class BaseRepository:
    """
    Base repository class following Repository pattern.
    Provides common CRUD operations for all entities.
    """

    def __init__(self, session: Session, model_class):
        self.session = session
        self.model_class = model_class

    def create(self, **kwargs):
        """Create a new entity."""
        entity = self.model_class(**kwargs)
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return entity

    def get_by_id(self, entity_id: int):
        """Get entity by ID."""
        if not valid_id(entity_id):
            return None
        return self.session.get(self.model_class, entity_id)

    def get_many(self, entity_ids: Iterable[int]) -> Dict[int, Any]:
        """Get entities by ID, keyed by ID."""
        ids = {entity_id for entity_id in entity_ids if valid_id(entity_id)}
        if not ids:
            return {}
        rows = self.session.query(self.model_class).filter(self.model_class.id.in_(ids)).all()
        return {row.id: row for row in rows}

    def update(self, entity_id: int, **kwargs):
        """Update entity by ID."""
        entity = self.get_by_id(entity_id)
        if entity:
            for key, value in kwargs.items():
                setattr(entity, key, value)
            self.session.commit()
            self.session.refresh(entity)
        return entity

    def count(self) -> int:
        """Count total entities."""
        return self.session.query(self.model_class).count()


class UserRepository(BaseRepository):
    """
    User repository for identity store operations.
    """

    def __init__(self, session: Session):
        super().__init__(session, User)

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address."""
        return self.session.query(User).filter(User.email == email).first()

    def get_by_username(self, username: str) -> Optional[User]:
        """Get user by username."""
        return self.session.query(User).filter(User.username == username).first()

    def update_online_status(self, user_id: int, is_online: bool) -> Optional[User]:
        """Toggle presence and refresh the last-seen timestamp."""
        return self.update(user_id, is_online=is_online, last_seen=utcnow())


class CategoryRepository(BaseRepository):
    """
    Category repository for the category registry.
    """

    def __init__(self, session: Session):
        super().__init__(session, Category)

    def get_all(self) -> List[Category]:
        """Get all categories in registry order."""
        return self.session.query(Category).order_by(Category.id).all()

    def get_by_slug(self, slug: str) -> Optional[Category]:
        """Get category by slug."""
        return self.session.query(Category).filter(Category.slug == slug).first()


class EventRepository(BaseRepository):
    """
    Repository for Event model operations.
    """

    def __init__(self, session: Session):
        super().__init__(session, Event)

    def get_for_update(self, event_id: int) -> Optional[Event]:
        """Get event by ID, taking a row lock where the backend supports it."""
        if not valid_id(event_id):
            return None
        return self.session.query(Event).filter(
            Event.id == event_id
        ).with_for_update().populate_existing().first()

    def list_active(
        self,
        category_id: Optional[int] = None,
        search: Optional[str] = None,
        location: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None
    ) -> List[Event]:
        """
        Get active events matching the filters, soonest first.

        Args:
            category_id: Restrict to one category
            search: Case-insensitive substring of title, description or location
            location: Case-insensitive substring of location
            date_from: Earliest event date, inclusive
            date_to: Latest event date, inclusive

        Returns:
            Matching events ordered by date, time and id
        """
        query = self.session.query(Event).filter(Event.is_active.is_(True))

        if category_id is not None:
            query = query.filter(Event.category_id == category_id)

        if search:
            pattern = _substring_pattern(search)
            query = query.filter(or_(
                Event.title.ilike(pattern, escape="\\"),
                Event.description.ilike(pattern, escape="\\"),
                Event.location.ilike(pattern, escape="\\")
            ))

        if location:
            query = query.filter(Event.location.ilike(_substring_pattern(location), escape="\\"))

        if date_from is not None:
            query = query.filter(Event.event_date >= date_from)
        if date_to is not None:
            query = query.filter(Event.event_date <= date_to)

        return query.order_by(Event.event_date, Event.event_time, Event.id).all()

    def list_by_organizer(self, organizer_id: int) -> List[Event]:
        """Get all events of an organizer, active or not, newest first."""
        return self.session.query(Event).filter(
            Event.organizer_id == organizer_id
        ).order_by(Event.created_at.desc(), Event.id.desc()).all()

    def soft_delete(self, event_id: int) -> bool:
        """Clear the active flag of an event."""
        event = self.get_by_id(event_id)
        if not event:
            return False
        event.is_active = False
        self.session.commit()
        return True

    def reserve_spot(self, event_id: int) -> bool:
        """
        Increment the attendee counter if the event still has room.
        Does not commit; the caller owns the transaction.
        """
        result = self.session.execute(
            update(Event)
            .where(
                Event.id == event_id,
                or_(Event.max_attendees.is_(None), Event.current_attendees < Event.max_attendees)
            )
            .values(current_attendees=Event.current_attendees + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def release_spot(self, event_id: int) -> bool:
        """
        Decrement the attendee counter, never below zero.
        Does not commit; the caller owns the transaction.
        """
        result = self.session.execute(
            update(Event)
            .where(Event.id == event_id, Event.current_attendees > 0)
            .values(current_attendees=Event.current_attendees - 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def count_active(self) -> int:
        """Count active events."""
        return self.session.query(Event).filter(Event.is_active.is_(True)).count()

    def count_active_organizers(self) -> int:
        """Count distinct organizers with at least one active event."""
        return self.session.query(func.count(func.distinct(Event.organizer_id))).filter(
            Event.is_active.is_(True)
        ).scalar() or 0


class AttendeeRepository:
    """
    Repository for attendance ledger rows.
    Mutating methods flush but never commit: the attendance ledger commits
    the ledger row together with the event counter.
    """

    def __init__(self, session: Session):
        self.session = session

    def get(self, event_id: int, user_id: int) -> Optional[EventAttendee]:
        """Get the ledger row for an (event, user) pair."""
        if not (valid_id(event_id) and valid_id(user_id)):
            return None
        return self.session.query(EventAttendee).filter(
            EventAttendee.event_id == event_id,
            EventAttendee.user_id == user_id
        ).first()

    def exists(self, event_id: int, user_id: int) -> bool:
        """Check whether the user has a ledger row for the event."""
        return self.get(event_id, user_id) is not None

    def add(self, event_id: int, user_id: int) -> EventAttendee:
        """Stage a new ledger row."""
        attendee = EventAttendee(event_id=event_id, user_id=user_id, joined_at=utcnow())
        self.session.add(attendee)
        self.session.flush()
        return attendee

    def remove(self, attendee: EventAttendee):
        """Stage removal of a ledger row."""
        self.session.delete(attendee)
        self.session.flush()

    def list_users(self, event_id: int) -> List[User]:
        """Get the users attending an event, in join order."""
        if not valid_id(event_id):
            return []
        return self.session.query(User).join(
            EventAttendee, EventAttendee.user_id == User.id
        ).filter(
            EventAttendee.event_id == event_id
        ).order_by(EventAttendee.joined_at, EventAttendee.id).all()

    def event_ids_for_user(self, user_id: int, event_ids: Iterable[int]) -> set:
        """Get the subset of ``event_ids`` the user attends."""
        ids = {event_id for event_id in event_ids if valid_id(event_id)}
        if not ids:
            return set()
        rows = self.session.execute(
            select(EventAttendee.event_id).where(
                EventAttendee.user_id == user_id,
                EventAttendee.event_id.in_(ids)
            )
        ).scalars().all()
        return set(rows)
