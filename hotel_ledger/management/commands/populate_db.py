import logging

from django.core.management.base import BaseCommand
from django.db import DatabaseError, transaction
from hotel_ledger.models import Activity, Hotel, Room

logger = logging.getLogger(__name__)

HOTELS = [
    {'name': 'Burj Al Arab', 'location': 'Dubai, UAE'},
    {'name': 'The Ritz Paris', 'location': 'Paris, France'},
    {'name': 'Marina Bay Sands', 'location': 'Singapore'},
    {'name': 'Four Seasons Resort Maldives', 'location': 'Maldives'},
]

# hotel_index points into HOTELS / the hotels ordered by id
ROOMS = [
    {'hotel_index': 0, 'room_type': 'deluxe suite', 'price': 1200},
    {'hotel_index': 0, 'room_type': 'panoramic suite', 'price': 1500},
    {'hotel_index': 1, 'room_type': 'superior', 'price': 750},
    {'hotel_index': 1, 'room_type': 'executive suite', 'price': 1100},
    {'hotel_index': 2, 'room_type': 'deluxe', 'price': 450},
    {'hotel_index': 2, 'room_type': 'club room', 'price': 650},
    {'hotel_index': 3, 'room_type': 'beach villa', 'price': 1600},
    {'hotel_index': 3, 'room_type': 'water villa', 'price': 1900},
]

ACTIVITIES = [
    {'hotel_index': 0, 'name': 'Spa', 'description': 'Luxury spa treatment with sea view', 'price': 180},
    {'hotel_index': 1, 'name': 'Gym', 'description': 'Access to premium fitness center', 'price': 50},
    {'hotel_index': 2, 'name': 'Personal Training', 'description': 'One-on-one fitness coaching', 'price': 120},
    {'hotel_index': 3, 'name': 'Indoor Pool', 'description': 'Climate-controlled indoor pool session', 'price': 60},
    {'hotel_index': 0, 'name': 'Outdoor Pool', 'description': 'Infinity outdoor pool access', 'price': 70},
    {'hotel_index': 1, 'name': 'Hotel Restaurants', 'description': 'Gourmet multi-course dining', 'price': 90},
    {'hotel_index': 2, 'name': 'Room Service', 'description': '24/7 in-room dining service', 'price': 40},
]


def _by_index(hotels, rows):
    for row in rows:
        index = row['hotel_index']
        if index < len(hotels):
            yield hotels[index], {k: v for k, v in row.items() if k != 'hotel_index'}


class Command(BaseCommand):
    help = 'Populate database with sample hotels, rooms and activities'

    def handle(self, *args, **options):
        try:
            if not Hotel.objects.exists():
                self.seed_catalog()
            elif not Activity.objects.exists():
                self.seed_activities(list(Hotel.objects.order_by('id')))
            else:
                self.stdout.write('Catalog already populated')
        except DatabaseError:
            # seeding is best effort; the API still serves whatever exists
            logger.exception('Seeding the catalog failed')
            self.stderr.write(self.style.ERROR('Failed to populate database, see log'))

    @transaction.atomic
    def seed_catalog(self):
        hotels = [Hotel.objects.create(**data) for data in HOTELS]
        for hotel, data in _by_index(hotels, ROOMS):
            Room.objects.create(hotel=hotel, status=Room.Status.AVAILABLE, **data)
        self.seed_activities(hotels)
        logger.info('Seeded %d hotels and %d rooms', len(hotels), len(ROOMS))
        self.stdout.write(
            self.style.SUCCESS('Successfully populated database with sample data')
        )

    def seed_activities(self, hotels):
        if not hotels:
            self.stdout.write('No hotels to attach activities to')
            return
        created = [Activity.objects.create(hotel=hotel, **data)
                   for hotel, data in _by_index(hotels, ACTIVITIES)]
        logger.info('Seeded %d activities', len(created))
        self.stdout.write(f'Created {len(created)} activities')
