import logging
import time

from django.db import OperationalError, transaction

from . import catalog
from .exceptions import RoomNotFound, RoomOccupied
from .models import Booking, Room

logger = logging.getLogger(__name__)

# a concurrent booking holding the write lock; SQLite reports it instantly
LOCK_RETRIES = 10
LOCK_RETRY_DELAY = 0.05


def _room_pk(room_id):
    if isinstance(room_id, bool):
        return None
    if isinstance(room_id, int):
        return room_id
    if isinstance(room_id, float):
        return int(room_id) if room_id.is_integer() else None
    if isinstance(room_id, str):
        try:
            return int(room_id.strip())
        except ValueError:
            return None
    return None


def _is_lock_error(exc):
    return 'lock' in str(exc).lower() or 'busy' in str(exc).lower()


def _commit_booking(room_pk, guest_name, check_in, check_out, activities):
    with transaction.atomic():
        # claim the room first so the write lock is taken before anything else
        claimed = Room.objects.filter(
            pk=room_pk, status=Room.Status.AVAILABLE,
        ).update(status=Room.Status.OCCUPIED)
        if not claimed:
            if not Room.objects.filter(pk=room_pk).exists():
                raise RoomNotFound()
            raise RoomOccupied()

        return Booking.objects.create(
            room_id=room_pk,
            guest_name=guest_name,
            check_in=check_in,
            check_out=check_out,
            activities=list(activities),
        )


def book_room(*, room_id, guest_name, check_in, check_out, activities=()):
    """Record a booking and mark its room occupied, all or nothing.

    The status flip is a conditional update on ``status='available'`` that
    runs before the insert, so of two concurrent bookings for one room only
    the first changes a row; the other sees the room occupied. A failure
    anywhere in the block leaves both the room and the bookings untouched.
    """
    room_pk = _room_pk(room_id)
    if room_pk is None:
        raise RoomNotFound()

    for attempt in range(LOCK_RETRIES):
        try:
            booking = _commit_booking(room_pk, guest_name, check_in, check_out, activities)
        except OperationalError as exc:
            if not _is_lock_error(exc):
                raise
            logger.warning("Room %s is locked by another booking (attempt %d): %s",
                           room_pk, attempt + 1, exc)
            time.sleep(LOCK_RETRY_DELAY * (attempt + 1))
            continue
        logger.info("Booking %s confirmed for room %s (%s to %s)",
                    booking.pk, room_pk, check_in, check_out)
        return booking

    # the lock never cleared: another booking for this room holds it
    logger.warning("Giving up on room %s after %d locked attempts", room_pk, LOCK_RETRIES)
    raise RoomOccupied()


def build_overview():
    """All four listings as seen by a privileged caller."""
    return {
        'hotels': list(catalog.hotels_qs(privileged=True)),
        'rooms': list(catalog.rooms_qs(privileged=True)),
        'bookings': list(catalog.bookings_qs()),
        'activities': list(catalog.activities_qs()),
    }
