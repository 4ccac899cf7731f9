from django.test import SimpleTestCase, TestCase, TransactionTestCase, RequestFactory, override_settings
from django.core.management import call_command
from django.db import DatabaseError, OperationalError, connection
from rest_framework.test import APIClient, APITestCase
from rest_framework import status
from decimal import Decimal
from io import StringIO
from unittest import mock
from concurrent.futures import ThreadPoolExecutor, as_completed
import threading

from . import services
from .exceptions import RoomNotFound, RoomOccupied
from .fields import decode_activity_ids
from .models import Activity, Booking, Hotel, Room
from .serializers import numeric_activity_ids
from .services import book_room
from .visibility import is_privileged

ADMIN_KEY = 'test-admin-key'


def make_booking_payload(room_id, **overrides):
    payload = {
        'roomId': room_id,
        'guestName': 'Alice',
        'checkIn': '2025-06-01',
        'checkOut': '2025-06-03',
    }
    payload.update(overrides)
    return payload


class ActivityListDecodingTestCase(SimpleTestCase):
    """Stored activity lists never break a read"""

    def test_valid_json_list_is_returned(self):
        self.assertEqual(decode_activity_ids('[1, 2, 3]'), [1, 2, 3])

    def test_malformed_content_degrades_to_empty_list(self):
        for stored in ['not json', '{"spa": 1}', '42', '"1,2"', '', None]:
            with self.subTest(stored=stored):
                self.assertEqual(decode_activity_ids(stored), [])

    def test_numeric_filter_keeps_order_and_drops_non_numbers(self):
        self.assertEqual(numeric_activity_ids([1, 'x', 2]), [1, 2])
        self.assertEqual(numeric_activity_ids(['3', 4.0, True, None, [5], 6]), [3, 4, 6])

    def test_numeric_filter_keeps_fractional_numbers(self):
        self.assertEqual(numeric_activity_ids([1, 2.5, '0.5', 'x']), [1, 2.5, 0.5])

    def test_numeric_filter_drops_non_finite_values(self):
        self.assertEqual(numeric_activity_ids([1, float('inf'), 'nan', '-Infinity', 2]), [1, 2])

    def test_numeric_filter_ignores_non_lists(self):
        for value in [None, 'spa', 7, {'id': 1}]:
            with self.subTest(value=value):
                self.assertEqual(numeric_activity_ids(value), [])


class VisibilityFilterTestCase(SimpleTestCase):
    """Admin key can come from the header or the query string"""

    def setUp(self):
        self.factory = RequestFactory()

    def test_header_key_is_privileged(self):
        request = self.factory.get('/api/hotels', HTTP_X_ADMIN_KEY='s3cret')
        self.assertTrue(is_privileged(request, admin_key='s3cret'))

    def test_query_key_is_privileged(self):
        request = self.factory.get('/api/hotels', {'adminKey': 's3cret'})
        self.assertTrue(is_privileged(request, admin_key='s3cret'))

    def test_missing_or_wrong_key_is_public(self):
        requests = [
            self.factory.get('/api/hotels'),
            self.factory.get('/api/hotels', HTTP_X_ADMIN_KEY='wrong'),
            self.factory.get('/api/hotels', {'adminKey': ''}),
        ]
        for request in requests:
            with self.subTest(path=request.get_full_path()):
                self.assertFalse(is_privileged(request, admin_key='s3cret'))

    @override_settings(ADMIN_KEY='from-settings')
    def test_defaults_to_configured_key(self):
        request = self.factory.get('/api/hotels', HTTP_X_ADMIN_KEY='from-settings')
        self.assertTrue(is_privileged(request))


@override_settings(ADMIN_KEY=ADMIN_KEY)
class CatalogVisibilityTestCase(APITestCase):
    """Public callers only see what can still be booked"""

    def setUp(self):
        self.open_hotel = Hotel.objects.create(name='Open Hotel', location='Lisbon')
        self.full_hotel = Hotel.objects.create(name='Full Hotel', location='Porto')
        self.free_room = Room.objects.create(hotel=self.open_hotel, room_type='double', price=Decimal('100'))
        self.taken_room = Room.objects.create(
            hotel=self.open_hotel, room_type='suite', price=Decimal('250.50'),
            status=Room.Status.OCCUPIED,
        )
        self.full_room = Room.objects.create(
            hotel=self.full_hotel, room_type='single', price=Decimal('80'),
            status=Room.Status.OCCUPIED,
        )
        self.spa = Activity.objects.create(
            hotel=self.full_hotel, name='Spa', description='Sea view spa', price=Decimal('180'),
        )

    def test_public_hotel_listing_hides_sold_out_hotels(self):
        response = self.client.get('/api/hotels')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), [{
            'id': self.open_hotel.id,
            'name': 'Open Hotel',
            'location': 'Lisbon',
            'totalRooms': 2,
            'availableRooms': 1,
        }])

    def test_admin_hotel_listing_includes_sold_out_hotels(self):
        for kwargs in [{'HTTP_X_ADMIN_KEY': ADMIN_KEY}, {'data': {'adminKey': ADMIN_KEY}}]:
            with self.subTest(kwargs=kwargs):
                response = self.client.get('/api/hotels', **kwargs)
                hotels = response.json()
                self.assertEqual([h['id'] for h in hotels], [self.open_hotel.id, self.full_hotel.id])
                self.assertEqual(hotels[1]['availableRooms'], 0)
                for hotel in hotels:
                    self.assertLessEqual(hotel['availableRooms'], hotel['totalRooms'])

    def test_hotel_without_rooms_counts_zero(self):
        empty = Hotel.objects.create(name='Empty', location='Faro')

        hotels = self.client.get('/api/hotels', HTTP_X_ADMIN_KEY=ADMIN_KEY).json()
        self.assertIn({'id': empty.id, 'name': 'Empty', 'location': 'Faro',
                       'totalRooms': 0, 'availableRooms': 0}, hotels)
        public_ids = [h['id'] for h in self.client.get('/api/hotels').json()]
        self.assertNotIn(empty.id, public_ids)

    def test_wrong_key_is_treated_as_public(self):
        response = self.client.get('/api/hotels', HTTP_X_ADMIN_KEY='guess')
        self.assertEqual([h['id'] for h in response.json()], [self.open_hotel.id])

    def test_public_room_listing_only_returns_available_rooms(self):
        response = self.client.get('/api/rooms')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), [{
            'id': self.free_room.id,
            'type': 'double',
            'price': 100.0,
            'status': 'available',
            'hotelName': 'Open Hotel',
            'location': 'Lisbon',
            'hotelId': self.open_hotel.id,
        }])

    def test_admin_room_listing_returns_every_room(self):
        rooms = self.client.get('/api/rooms', HTTP_X_ADMIN_KEY=ADMIN_KEY).json()

        self.assertEqual([r['id'] for r in rooms],
                         [self.free_room.id, self.taken_room.id, self.full_room.id])
        self.assertEqual(rooms[1]['price'], 250.5)

    def test_room_listing_filters_by_hotel(self):
        rooms = self.client.get(
            '/api/rooms', {'hotelId': self.full_hotel.id}, HTTP_X_ADMIN_KEY=ADMIN_KEY,
        ).json()
        self.assertEqual([r['id'] for r in rooms], [self.full_room.id])

        public_rooms = self.client.get('/api/rooms', {'hotelId': self.full_hotel.id}).json()
        self.assertEqual(public_rooms, [])

    def test_non_numeric_hotel_filter_matches_nothing(self):
        rooms = self.client.get('/api/rooms', {'hotelId': 'abc'}, HTTP_X_ADMIN_KEY=ADMIN_KEY).json()
        self.assertEqual(rooms, [])

    def test_activities_are_public(self):
        response = self.client.get('/api/activities')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), [{
            'id': self.spa.id,
            'name': 'Spa',
            'description': 'Sea view spa',
            'price': 180.0,
            'hotelId': self.full_hotel.id,
            'hotelName': 'Full Hotel',
        }])


@override_settings(ADMIN_KEY=ADMIN_KEY)
class BookingCreationTestCase(APITestCase):
    """Booking requests are validated in order and committed atomically"""

    def setUp(self):
        self.hotel = Hotel.objects.create(name='H1', location='Athens')
        self.room = Room.objects.create(hotel=self.hotel, room_type='double', price=Decimal('100'))

    def test_booking_confirmed_and_room_occupied(self):
        response = self.client.post('/api/bookings', make_booking_payload(self.room.id), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        body = response.json()
        self.assertEqual(body['message'], 'Booking confirmed')
        booking = Booking.objects.get()
        self.assertEqual(body['booking'], {
            'id': booking.id,
            'roomId': self.room.id,
            'guestName': 'Alice',
            'checkIn': '2025-06-01',
            'checkOut': '2025-06-03',
            'activities': [],
        })
        self.room.refresh_from_db()
        self.assertEqual(self.room.status, Room.Status.OCCUPIED)

    def test_second_booking_for_same_room_conflicts(self):
        first = self.client.post('/api/bookings', make_booking_payload(self.room.id), format='json')
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)

        second = self.client.post('/api/bookings', make_booking_payload(self.room.id), format='json')

        self.assertEqual(second.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(second.json(), {'error': 'Room already occupied'})
        self.assertEqual(Booking.objects.count(), 1)

    def test_check_out_before_check_in_rejected(self):
        payload = make_booking_payload(self.room.id, guestName='Bob',
                                       checkIn='2025-06-05', checkOut='2025-06-01')
        response = self.client.post('/api/bookings', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json(), {'error': 'checkOut must be after checkIn'})

    def test_same_day_check_out_rejected(self):
        payload = make_booking_payload(self.room.id, checkIn='2025-06-05', checkOut='2025-06-05')
        response = self.client.post('/api/bookings', payload, format='json')
        self.assertEqual(response.json(), {'error': 'checkOut must be after checkIn'})

    def test_missing_fields_rejected(self):
        payloads = [
            {},
            {'roomId': self.room.id, 'checkIn': '2025-06-01', 'checkOut': '2025-06-03'},
            make_booking_payload(self.room.id, checkIn=''),
            make_booking_payload(0),
            make_booking_payload(self.room.id, checkOut=None),
        ]
        for payload in payloads:
            with self.subTest(payload=payload):
                response = self.client.post('/api/bookings', payload, format='json')
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertEqual(response.json(),
                                 {'error': 'roomId, guestName, checkIn, checkOut are required'})

    def test_missing_fields_reported_before_bad_dates(self):
        payload = {'roomId': self.room.id, 'checkIn': 'garbage', 'checkOut': '2025-06-03'}
        response = self.client.post('/api/bookings', payload, format='json')
        self.assertEqual(response.json(), {'error': 'roomId, guestName, checkIn, checkOut are required'})

    def test_unparsable_dates_rejected(self):
        for check_in, check_out in [('2025-13-01', '2025-06-03'), ('soon', '2025-06-03'),
                                    ('2025-06-01', '2025-02-30'), (20250601, '2025-06-03')]:
            with self.subTest(check_in=check_in, check_out=check_out):
                payload = make_booking_payload(self.room.id, checkIn=check_in, checkOut=check_out)
                response = self.client.post('/api/bookings', payload, format='json')
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertEqual(response.json(), {'error': 'Invalid dates'})

    def test_unknown_room_not_found(self):
        # a fractional id must not be truncated onto an existing room
        for room_id in [self.room.id + 100, 'abc', self.room.id + 0.5, f'{self.room.id}.5']:
            with self.subTest(room_id=room_id):
                response = self.client.post('/api/bookings', make_booking_payload(room_id), format='json')
                self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
                self.assertEqual(response.json(), {'error': 'Room not found'})
        self.assertFalse(Booking.objects.exists())

    def test_validation_failure_leaves_room_available(self):
        payload = make_booking_payload(self.room.id, checkIn='2025-06-05', checkOut='2025-06-01')
        self.client.post('/api/bookings', payload, format='json')

        self.room.refresh_from_db()
        self.assertEqual(self.room.status, Room.Status.AVAILABLE)
        self.assertFalse(Booking.objects.exists())

    def test_non_numeric_activities_dropped(self):
        payload = make_booking_payload(self.room.id, activities=[1, 'x', 2])
        response = self.client.post('/api/bookings', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json()['booking']['activities'], [1, 2])
        self.assertEqual(Booking.objects.get().activities, [1, 2])

    def test_fractional_activities_kept(self):
        payload = make_booking_payload(self.room.id, activities=[1, 2.5])
        response = self.client.post('/api/bookings', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json()['booking']['activities'], [1, 2.5])
        listing = self.client.get('/api/bookings', HTTP_X_ADMIN_KEY=ADMIN_KEY).json()
        self.assertEqual(listing[0]['activities'], [1, 2.5])

    def test_long_guest_name_accepted(self):
        guest_name = 'Alice ' * 100
        response = self.client.post('/api/bookings', make_booking_payload(self.room.id, guestName=guest_name),
                                    format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Booking.objects.get().guest_name, guest_name)

    def test_activities_round_trip_to_booking_listing(self):
        # ids from another hotel are accepted as-is
        payload = make_booking_payload(self.room.id, activities=[7, 'spa', 3, '5'])
        created = self.client.post('/api/bookings', payload, format='json').json()

        listing = self.client.get('/api/bookings', HTTP_X_ADMIN_KEY=ADMIN_KEY).json()

        self.assertEqual(created['booking']['activities'], [7, 3, 5])
        self.assertEqual(listing[0]['activities'], [7, 3, 5])

    def test_booked_room_hidden_from_public_listing(self):
        self.client.post('/api/bookings', make_booking_payload(self.room.id), format='json')

        response = self.client.get('/api/rooms', {'hotelId': self.hotel.id})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), [])
        self.assertEqual(self.client.get('/api/hotels').json(), [])

    def test_storage_failure_returns_generic_error(self):
        with mock.patch('hotel_ledger.services.book_room', side_effect=DatabaseError('disk I/O error')):
            response = self.client.post('/api/bookings', make_booking_payload(self.room.id), format='json')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {'error': 'Failed to create booking'})


class BookingCommitTestCase(TestCase):
    """The booking row and the status flip succeed or fail together"""

    def setUp(self):
        self.hotel = Hotel.objects.create(name='H1', location='Athens')
        self.room = Room.objects.create(hotel=self.hotel, room_type='double', price=Decimal('100'))

    def book(self, room_id):
        return book_room(room_id=room_id, guest_name='Alice',
                         check_in='2025-06-01', check_out='2025-06-03', activities=[1])

    def test_commit_inserts_booking_and_occupies_room(self):
        booking = self.book(self.room.id)

        self.assertEqual(booking.room_id, self.room.id)
        self.assertEqual(booking.activities, [1])
        self.assertIsNotNone(booking.created_at)
        self.room.refresh_from_db()
        self.assertEqual(self.room.status, Room.Status.OCCUPIED)

    def test_occupied_room_raises_conflict_without_booking(self):
        Room.objects.filter(pk=self.room.pk).update(status=Room.Status.OCCUPIED)

        with self.assertRaises(RoomOccupied):
            self.book(self.room.id)

        self.assertFalse(Booking.objects.exists())

    def test_failed_insert_leaves_room_available(self):
        with mock.patch('hotel_ledger.services.Booking.objects.create', side_effect=DatabaseError('disk full')):
            with self.assertRaises(DatabaseError):
                self.book(self.room.id)

        self.room.refresh_from_db()
        self.assertEqual(self.room.status, Room.Status.AVAILABLE)
        self.assertFalse(Booking.objects.exists())

    def test_locked_room_is_retried(self):
        real_commit = services._commit_booking
        calls = []

        def locked_once(*args):
            calls.append(args)
            if len(calls) == 1:
                raise OperationalError('database table is locked')
            return real_commit(*args)

        with mock.patch('hotel_ledger.services._commit_booking', side_effect=locked_once), \
                mock.patch('hotel_ledger.services.time.sleep'):
            booking = self.book(self.room.id)

        self.assertEqual(len(calls), 2)
        self.assertEqual(booking.room_id, self.room.id)

    def test_lock_that_never_clears_is_a_conflict(self):
        with mock.patch('hotel_ledger.services._commit_booking',
                        side_effect=OperationalError('database is locked')) as commit, \
                mock.patch('hotel_ledger.services.time.sleep'):
            with self.assertRaises(RoomOccupied):
                self.book(self.room.id)

        self.assertEqual(commit.call_count, services.LOCK_RETRIES)

    def test_other_operational_errors_propagate(self):
        with mock.patch('hotel_ledger.services._commit_booking',
                        side_effect=OperationalError('no such table: bookings')) as commit:
            with self.assertRaises(OperationalError):
                self.book(self.room.id)

        self.assertEqual(commit.call_count, 1)

    def test_missing_room_raises_not_found(self):
        for room_id in [self.room.id + 1, None, True, '1x', self.room.id + 0.5]:
            with self.subTest(room_id=room_id):
                with self.assertRaises(RoomNotFound):
                    self.book(room_id)

    def test_numeric_string_room_id_is_accepted(self):
        booking = self.book(str(self.room.id))
        self.assertEqual(booking.room_id, self.room.id)

    def test_whole_float_room_id_is_accepted(self):
        booking = self.book(float(self.room.id))
        self.assertEqual(booking.room_id, self.room.id)


class RaceConditionTestCase(TransactionTestCase):
    """Concurrent bookings for the same room: one succeeds, the rest conflict"""

    def setUp(self):
        hotel = Hotel.objects.create(name='H1', location='Athens')
        self.room = Room.objects.create(hotel=hotel, room_type='double', price=Decimal('100'))

    def test_concurrent_booking_attempts_race_condition(self):
        num_attempts = 4
        start = threading.Barrier(num_attempts)

        def create_booking(guest_num):
            try:
                start.wait()
                response = APIClient().post(
                    '/api/bookings',
                    make_booking_payload(self.room.id, guestName=f'Guest {guest_num}'),
                    format='json',
                )
                return response.status_code, response.json()
            finally:
                connection.close()

        results = []

        with ThreadPoolExecutor(max_workers=num_attempts) as executor:
            futures = [executor.submit(create_booking, i) for i in range(num_attempts)]
            for future in as_completed(futures):
                results.append(future.result())

        codes = sorted(code for code, _ in results)
        self.assertEqual(codes, [201] + [409] * (num_attempts - 1), results)
        for code, body in results:
            if code == 409:
                self.assertEqual(body, {'error': 'Room already occupied'})

        self.assertEqual(Booking.objects.filter(room=self.room).count(), 1)
        self.room.refresh_from_db()
        self.assertEqual(self.room.status, Room.Status.OCCUPIED)

    def test_sequential_attempts_yield_one_success(self):
        outcomes = []
        for guest_num in range(3):
            try:
                book_room(room_id=self.room.id, guest_name=f'Guest {guest_num}',
                          check_in='2025-06-01', check_out='2025-06-03')
                outcomes.append('booked')
            except RoomOccupied:
                outcomes.append('conflict')

        self.assertEqual(outcomes, ['booked', 'conflict', 'conflict'])


@override_settings(ADMIN_KEY=ADMIN_KEY)
class BookingListTestCase(APITestCase):
    """Booking list is admin only and tolerant of legacy rows"""

    def setUp(self):
        self.hotel = Hotel.objects.create(name='H1', location='Athens')
        self.room = Room.objects.create(hotel=self.hotel, room_type='double', price=Decimal('100'))
        self.other_room = Room.objects.create(hotel=self.hotel, room_type='suite', price=Decimal('300'))

    def test_public_caller_refused(self):
        response = self.client.get('/api/bookings')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json(), {'error': 'Admin access required'})

    def test_admin_sees_booking_with_room_and_hotel(self):
        self.client.post('/api/bookings', make_booking_payload(self.room.id), format='json')

        response = self.client.get('/api/bookings', HTTP_X_ADMIN_KEY=ADMIN_KEY)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        [booking] = response.json()
        self.assertEqual(booking['guestName'], 'Alice')
        self.assertEqual(booking['checkIn'], '2025-06-01')
        self.assertEqual(booking['checkOut'], '2025-06-03')
        self.assertEqual(booking['activities'], [])
        self.assertEqual(booking['roomId'], self.room.id)
        self.assertEqual(booking['roomType'], 'double')
        self.assertEqual(booking['hotelId'], self.hotel.id)
        self.assertEqual(booking['hotelName'], 'H1')
        self.assertTrue(booking['createdAt'])

    def test_bookings_listed_newest_first(self):
        first = book_room(room_id=self.room.id, guest_name='Alice',
                          check_in='2025-06-01', check_out='2025-06-03')
        second = book_room(room_id=self.other_room.id, guest_name='Bob',
                           check_in='2025-07-01', check_out='2025-07-03')

        bookings = self.client.get('/api/bookings', {'adminKey': ADMIN_KEY}).json()

        self.assertEqual([b['id'] for b in bookings], [second.id, first.id])

    def test_malformed_stored_activities_degrade_to_empty_list(self):
        booking = book_room(room_id=self.room.id, guest_name='Legacy',
                            check_in='2025-06-01', check_out='2025-06-03', activities=[1])
        for raw in ['not json', '{"spa": true}']:
            with self.subTest(raw=raw):
                with connection.cursor() as cursor:
                    cursor.execute('UPDATE bookings SET activities = %s WHERE id = %s', [raw, booking.id])

                response = self.client.get('/api/bookings', HTTP_X_ADMIN_KEY=ADMIN_KEY)

                self.assertEqual(response.status_code, status.HTTP_200_OK)
                self.assertEqual(response.json()[0]['activities'], [])


@override_settings(ADMIN_KEY=ADMIN_KEY)
class AdminOverviewTestCase(APITestCase):
    """Overview combines the four privileged listings"""

    def setUp(self):
        hotel = Hotel.objects.create(name='H1', location='Athens')
        sold_out = Hotel.objects.create(name='H2', location='Crete')
        self.room = Room.objects.create(hotel=hotel, room_type='double', price=Decimal('100'))
        Room.objects.create(hotel=sold_out, room_type='villa', price=Decimal('900'),
                            status=Room.Status.OCCUPIED)
        Activity.objects.create(hotel=hotel, name='Gym', description='Fitness center', price=Decimal('50'))
        book_room(room_id=self.room.id, guest_name='Alice',
                  check_in='2025-06-01', check_out='2025-06-03', activities=[1, 2])

    def test_public_caller_refused_before_data_access(self):
        with mock.patch('hotel_ledger.services.build_overview') as build_overview:
            response = self.client.get('/api/admin/overview')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json(), {'error': 'Admin access required'})
        build_overview.assert_not_called()

    def test_overview_matches_individual_listings(self):
        headers = {'HTTP_X_ADMIN_KEY': ADMIN_KEY}

        overview = self.client.get('/api/admin/overview', **headers).json()

        self.assertEqual(set(overview), {'hotels', 'rooms', 'bookings', 'activities'})
        self.assertEqual(overview['hotels'], self.client.get('/api/hotels', **headers).json())
        self.assertEqual(overview['rooms'], self.client.get('/api/rooms', **headers).json())
        self.assertEqual(overview['bookings'], self.client.get('/api/bookings', **headers).json())
        self.assertEqual(overview['activities'], self.client.get('/api/activities', **headers).json())
        self.assertEqual(len(overview['hotels']), 2)
        self.assertEqual(overview['bookings'][0]['activities'], [1, 2])

    def test_storage_failure_returns_generic_error(self):
        with mock.patch('hotel_ledger.services.build_overview', side_effect=DatabaseError('locked')):
            response = self.client.get('/api/admin/overview', HTTP_X_ADMIN_KEY=ADMIN_KEY)

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {'error': 'Failed to load admin overview'})


class RoutingTestCase(APITestCase):

    def test_liveness(self):
        response = self.client.get('/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {'status': 'ok', 'message': 'Hotel System backend is running'})

    def test_health(self):
        self.assertEqual(self.client.get('/health').json(), {'status': 'ok'})

    def test_unmatched_route_returns_json_404(self):
        for path in ['/api/nothing-here', '/api/hotels/1', '/unknown']:
            with self.subTest(path=path):
                response = self.client.get(path)
                self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
                self.assertEqual(response.json(), {'error': 'Not found'})

    @override_settings(ADMIN_KEY=ADMIN_KEY)
    def test_unserved_method_returns_json_404(self):
        requests = [
            ('post', '/api/hotels'),
            ('post', '/api/activities'),
            ('put', '/api/rooms'),
            ('delete', '/api/bookings'),
            ('post', '/api/admin/overview'),
        ]
        for method, path in requests:
            with self.subTest(method=method, path=path):
                response = getattr(self.client, method)(path, {}, format='json', HTTP_X_ADMIN_KEY=ADMIN_KEY)
                self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
                self.assertEqual(response.json(), {'error': 'Not found'})

    def test_hotel_listing_storage_failure(self):
        with mock.patch('hotel_ledger.catalog.hotels_qs', side_effect=DatabaseError('gone')):
            response = self.client.get('/api/hotels')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {'error': 'Failed to load hotels'})


class PopulateDbCommandTestCase(TestCase):

    def test_seeds_empty_catalog(self):
        call_command('populate_db', stdout=StringIO())

        self.assertEqual(Hotel.objects.count(), 4)
        self.assertEqual(Room.objects.count(), 8)
        self.assertEqual(Activity.objects.count(), 7)
        self.assertFalse(Room.objects.exclude(status=Room.Status.AVAILABLE).exists())
        self.assertEqual(
            list(Hotel.objects.get(name='Burj Al Arab').activities.values_list('name', flat=True)),
            ['Spa', 'Outdoor Pool'],
        )

    def test_second_run_is_a_no_op(self):
        call_command('populate_db', stdout=StringIO())
        call_command('populate_db', stdout=StringIO())

        self.assertEqual(Hotel.objects.count(), 4)
        self.assertEqual(Activity.objects.count(), 7)

    def test_adds_only_activities_when_hotels_exist(self):
        hotels = [Hotel.objects.create(name=f'Hotel {i}', location='Somewhere') for i in range(2)]

        call_command('populate_db', stdout=StringIO())

        self.assertEqual(Hotel.objects.count(), 2)
        self.assertFalse(Room.objects.exists())
        # only activities whose hotel slot exists are created
        self.assertEqual(Activity.objects.filter(hotel=hotels[0]).count(), 2)
        self.assertEqual(Activity.objects.filter(hotel=hotels[1]).count(), 2)
        self.assertEqual(Activity.objects.count(), 4)

    def test_database_error_is_logged_not_raised(self):
        stderr = StringIO()
        with mock.patch('hotel_ledger.models.Hotel.objects.exists', side_effect=DatabaseError('no table')):
            call_command('populate_db', stdout=StringIO(), stderr=stderr)

        self.assertIn('Failed to populate database', stderr.getvalue())
