"""
Dependency injection for EventHub.
Provides database sessions, repositories, services, caching and
authentication dependencies.
"""

from typing import Any, Dict, Generator, Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..db.database import (
    AttendeeRepository,
    CategoryRepository,
    DatabaseConnection,
    EventRepository,
    UserRepository,
)
from ..db.redis_client import CacheManager, LockProvider, RedisConnection
from ..models.user import User
from ..services.attendance_service import AttendanceLedger
from ..services.auth_service import AuthenticationService
from ..services.category_service import CategoryRegistry
from ..services.event_service import EventCatalog
from ..services.jwt_service import JWTService

# Security scheme
security = HTTPBearer()

# Global instances
db_connection = DatabaseConnection()
redis_connection = RedisConnection()
jwt_service = JWTService()
auth_service = AuthenticationService(jwt_service)
lock_provider = LockProvider()
cache_settings: Dict[str, Any] = {"enabled": False}


def get_database_session() -> Generator[Session, None, None]:
    """
    Get database session dependency.

    Yields:
        SQLAlchemy database session
    """
    yield from db_connection.get_session()


def get_user_repository(session: Session = Depends(get_database_session)) -> UserRepository:
    return UserRepository(session)


def get_category_repository(session: Session = Depends(get_database_session)) -> CategoryRepository:
    return CategoryRepository(session)


def get_event_repository(session: Session = Depends(get_database_session)) -> EventRepository:
    return EventRepository(session)


def get_attendee_repository(session: Session = Depends(get_database_session)) -> AttendeeRepository:
    return AttendeeRepository(session)


def get_cache_manager() -> CacheManager:
    """
    Get cache manager dependency.
    Returns a disabled manager unless caching is enabled and Redis is up.
    """
    if cache_settings.get("enabled") and redis_connection.is_initialized:
        return CacheManager(redis_connection.redis_client, cache_settings)
    return CacheManager(None, cache_settings)


async def get_jwt_service() -> JWTService:
    """
    Get JWT service dependency.

    Returns:
        JWT service instance
    """
    if not jwt_service._initialized:
        await jwt_service.initialize()
    return jwt_service


async def get_auth_service() -> AuthenticationService:
    """Get authentication service dependency."""
    await auth_service.initialize()
    return auth_service


def get_category_registry(
    category_repo: CategoryRepository = Depends(get_category_repository)
) -> CategoryRegistry:
    return CategoryRegistry(category_repo)


def get_event_catalog(
    event_repo: EventRepository = Depends(get_event_repository),
    category_repo: CategoryRepository = Depends(get_category_repository),
    user_repo: UserRepository = Depends(get_user_repository),
    attendee_repo: AttendeeRepository = Depends(get_attendee_repository)
) -> EventCatalog:
    """Get event catalog dependency."""
    return EventCatalog(event_repo, category_repo, user_repo, attendee_repo)


def get_attendance_ledger(
    session: Session = Depends(get_database_session),
    event_repo: EventRepository = Depends(get_event_repository),
    attendee_repo: AttendeeRepository = Depends(get_attendee_repository),
    user_repo: UserRepository = Depends(get_user_repository)
) -> AttendanceLedger:
    """Get attendance ledger dependency."""
    return AttendanceLedger(session, event_repo, attendee_repo, user_repo, lock_provider)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    jwt_svc: JWTService = Depends(get_jwt_service),
    user_repo: UserRepository = Depends(get_user_repository)
) -> User:
    """
    Get current authenticated user dependency.

    Args:
        credentials: HTTP authorization credentials
        jwt_svc: JWT service
        user_repo: User repository

    Returns:
        Current authenticated user

    Raises:
        HTTPException: If the token is invalid or its user no longer exists
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = jwt_svc.verify_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    try:
        user_id = int(payload["user_id"])
    except (TypeError, ValueError):
        raise credentials_exception

    user = user_repo.get_by_id(user_id)
    if user is None:
        raise credentials_exception

    return user


async def get_optional_current_user(
    request: Request,
    jwt_svc: JWTService = Depends(get_jwt_service),
    user_repo: UserRepository = Depends(get_user_repository)
) -> Optional[User]:
    """
    Get current user dependency that doesn't raise if not authenticated.

    Returns:
        Current user if a valid bearer token is present, None otherwise
    """
    authorization = request.headers.get("Authorization")

    if not authorization or not authorization.startswith("Bearer "):
        return None

    payload = jwt_svc.verify_token(authorization.split(" ", 1)[1])
    if payload is None:
        return None

    try:
        return user_repo.get_by_id(int(payload["user_id"]))
    except (TypeError, ValueError):
        return None
