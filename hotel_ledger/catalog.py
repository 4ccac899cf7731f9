"""Read querysets for hotels, rooms, activities and bookings.

Every listing goes through one of these functions so the public and the
privileged views of the catalog can't drift apart.
"""

from django.db.models import Count, Q

from .models import Activity, Booking, Hotel, Room


def hotels_qs(privileged=False):
    qs = Hotel.objects.annotate(
        total_rooms=Count('rooms'),
        available_rooms=Count('rooms', filter=Q(rooms__status=Room.Status.AVAILABLE)),
    )
    if not privileged:
        qs = qs.filter(available_rooms__gt=0)
    return qs.order_by('id')


def rooms_qs(hotel_id=None, privileged=False):
    """Rooms with their hotel, optionally limited to a single hotel.

    ``hotel_id`` comes straight from the query string; a value that is not an
    integer can't match any hotel, so it yields an empty queryset.
    """
    qs = Room.objects.select_related('hotel')
    if hotel_id not in (None, ''):
        try:
            qs = qs.filter(hotel_id=int(hotel_id))
        except (TypeError, ValueError):
            return qs.none()
    if not privileged:
        qs = qs.filter(status=Room.Status.AVAILABLE)
    return qs.order_by('id')


def activities_qs():
    return Activity.objects.select_related('hotel').order_by('id')


def bookings_qs():
    return Booking.objects.select_related('room__hotel').order_by('-created_at', '-id')
