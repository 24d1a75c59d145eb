"""
Attendance ledger service.
Records which users attend which events and keeps each event's attendee
counter in step with its ledger rows.
"""

import logging
from typing import Iterable, List, Set
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.logging import log_attendance_change
from ..db.database import AttendeeRepository, EventRepository, UserRepository
from ..db.redis_client import LockProvider
from ..schemas.auth import UserProfile

logger = logging.getLogger(__name__)


class AttendanceLedger:
    """
    Join and leave operations.

    Changes for one event are serialized by a per-event lock, and the
    ledger row is committed in the same transaction as the guarded counter
    update. Changes for different events run independently.
    """

    def __init__(
        self,
        session: Session,
        event_repo: EventRepository,
        attendee_repo: AttendeeRepository,
        user_repo: UserRepository,
        lock_provider: LockProvider
    ):
        self.session = session
        self.event_repo = event_repo
        self.attendee_repo = attendee_repo
        self.user_repo = user_repo
        self.lock_provider = lock_provider

    @staticmethod
    def _lock_key(event_id: int) -> str:
        return f"attendance:event:{event_id}"

    async def join(self, event_id: int, user_id: int) -> bool:
        """
        Add ``user_id`` to the attendees of ``event_id``.

        Returns:
            False if the event is missing, inactive or full, or the user
            already attends

        Raises:
            LockAcquisitionError: The event lock could not be taken in time
        """
        async with self.lock_provider.lock(self._lock_key(event_id)):
            try:
                event = self.event_repo.get_for_update(event_id)
                if event is None or not event.is_active:
                    logger.warning(f"Join rejected: event {event_id} not found or inactive")
                    self.session.rollback()
                    return False

                if self.user_repo.get_by_id(user_id) is None:
                    logger.warning(f"Join rejected: user {user_id} not found")
                    self.session.rollback()
                    return False

                if self.attendee_repo.exists(event_id, user_id):
                    logger.warning(f"Join rejected: user {user_id} already attends event {event_id}")
                    self.session.rollback()
                    return False

                if not self.event_repo.reserve_spot(event_id):
                    logger.warning(f"Join rejected: event {event_id} is full")
                    self.session.rollback()
                    return False

                self.attendee_repo.add(event_id, user_id)
                self.session.commit()

            except IntegrityError:
                self.session.rollback()
                logger.warning(f"Join rejected: duplicate ledger row for user {user_id} on event {event_id}")
                return False
            except Exception as e:
                self.session.rollback()
                logger.error(f"Join failed for user {user_id} on event {event_id}: {e}")
                raise

        event = self.event_repo.get_by_id(event_id)
        log_attendance_change("join", event_id, user_id, event.current_attendees)
        return True

    async def leave(self, event_id: int, user_id: int) -> bool:
        """
        Remove ``user_id`` from the attendees of ``event_id``.

        Returns:
            False if the user does not attend the event

        Raises:
            LockAcquisitionError: The event lock could not be taken in time
        """
        async with self.lock_provider.lock(self._lock_key(event_id)):
            try:
                self.event_repo.get_for_update(event_id)
                attendee = self.attendee_repo.get(event_id, user_id)
                if attendee is None:
                    logger.warning(f"Leave rejected: user {user_id} does not attend event {event_id}")
                    self.session.rollback()
                    return False

                self.attendee_repo.remove(attendee)
                self.event_repo.release_spot(event_id)
                self.session.commit()

            except Exception as e:
                self.session.rollback()
                logger.error(f"Leave failed for user {user_id} on event {event_id}: {e}")
                raise

        event = self.event_repo.get_by_id(event_id)
        log_attendance_change(
            "leave", event_id, user_id, event.current_attendees if event is not None else None
        )
        return True

    def is_attending(self, event_id: int, user_id: int) -> bool:
        return self.attendee_repo.exists(event_id, user_id)

    def list_attendees(self, event_id: int) -> List[UserProfile]:
        """Profiles of the users attending an event, in join order."""
        return [UserProfile.model_validate(user) for user in self.attendee_repo.list_users(event_id)]

    def attending_event_ids(self, user_id: int, event_ids: Iterable[int]) -> Set[int]:
        return self.attendee_repo.event_ids_for_user(user_id, event_ids)
