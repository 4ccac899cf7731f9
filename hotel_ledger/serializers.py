import math
from collections.abc import Mapping
from datetime import datetime

from rest_framework import serializers

from . import services
from .exceptions import InvalidDateRange, InvalidDates, MissingBookingFields
from .models import Activity, Booking, Hotel, Room

REQUIRED_BOOKING_FIELDS = ('roomId', 'guestName', 'checkIn', 'checkOut')


def parse_calendar_date(value):
    if not isinstance(value, str):
        raise InvalidDates()
    try:
        return datetime.strptime(value.strip(), '%Y-%m-%d').date()
    except ValueError:
        raise InvalidDates()


def _as_number(value):
    """The finite number ``value`` stands for, or None when it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            value = float(text)
        except ValueError:
            return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value) if value.is_integer() else value
    return None


def numeric_activity_ids(values):
    """Keep the entries of ``values`` that are numbers, in order.

    Numeric strings such as ``"3"`` are converted; text, booleans, nulls,
    nested values and non-finite numbers are dropped. Anything other than a
    list gives [].
    """
    if not isinstance(values, list):
        return []
    numbers = (_as_number(value) for value in values)
    return [number for number in numbers if number is not None]


class HotelSerializer(serializers.ModelSerializer):
    totalRooms = serializers.IntegerField(source='total_rooms', read_only=True)
    availableRooms = serializers.IntegerField(source='available_rooms', read_only=True)

    class Meta:
        model = Hotel
        fields = ['id', 'name', 'location', 'totalRooms', 'availableRooms']


class RoomSerializer(serializers.ModelSerializer):
    type = serializers.CharField(source='room_type')
    hotelName = serializers.CharField(source='hotel.name', read_only=True)
    location = serializers.CharField(source='hotel.location', read_only=True)
    hotelId = serializers.IntegerField(source='hotel_id', read_only=True)

    class Meta:
        model = Room
        fields = ['id', 'type', 'price', 'status', 'hotelName', 'location', 'hotelId']


class ActivitySerializer(serializers.ModelSerializer):
    hotelId = serializers.IntegerField(source='hotel_id', read_only=True)
    hotelName = serializers.CharField(source='hotel.name', read_only=True)

    class Meta:
        model = Activity
        fields = ['id', 'name', 'description', 'price', 'hotelId', 'hotelName']


class BookingSerializer(serializers.ModelSerializer):
    """Booking row as shown to admins, with room and hotel summary."""

    guestName = serializers.CharField(source='guest_name')
    checkIn = serializers.DateField(source='check_in')
    checkOut = serializers.DateField(source='check_out')
    activities = serializers.JSONField(read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    roomId = serializers.IntegerField(source='room_id', read_only=True)
    roomType = serializers.CharField(source='room.room_type', read_only=True)
    hotelId = serializers.IntegerField(source='room.hotel_id', read_only=True)
    hotelName = serializers.CharField(source='room.hotel.name', read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id', 'guestName', 'checkIn', 'checkOut', 'activities', 'createdAt',
            'roomId', 'roomType', 'hotelId', 'hotelName',
        ]


class BookingRequestSerializer(serializers.ModelSerializer):
    """Validates a booking request and commits it through services.book_room.

    Checks run in a fixed order and each failure has its own error, so the
    usual per-field validation is replaced by to_internal_value.
    """

    roomId = serializers.IntegerField(source='room_id')
    guestName = serializers.CharField(source='guest_name')
    checkIn = serializers.DateField(source='check_in')
    checkOut = serializers.DateField(source='check_out')
    activities = serializers.JSONField(required=False)

    class Meta:
        model = Booking
        fields = ['id', 'roomId', 'guestName', 'checkIn', 'checkOut', 'activities']

    def to_internal_value(self, data):
        if not isinstance(data, Mapping) or not all(data.get(name) for name in REQUIRED_BOOKING_FIELDS):
            raise MissingBookingFields()

        check_in = parse_calendar_date(data['checkIn'])
        check_out = parse_calendar_date(data['checkOut'])
        if check_out <= check_in:
            raise InvalidDateRange()

        return {
            'room_id': data['roomId'],
            'guest_name': str(data['guestName']),
            'check_in': check_in,
            'check_out': check_out,
            'activities': numeric_activity_ids(data.get('activities')),
        }

    def create(self, validated):
        return services.book_room(**validated)
