from rest_framework.routers import SimpleRouter
from hotel_ledger.views import (
    ActivityViewSet,
    AdminViewSet,
    BookingViewSet,
    HotelViewSet,
    RoomViewSet,
)

router = SimpleRouter(trailing_slash=False)
router.register(r'hotels', HotelViewSet, basename='hotel')
router.register(r'rooms', RoomViewSet, basename='room')
router.register(r'activities', ActivityViewSet, basename='activity')
router.register(r'bookings', BookingViewSet, basename='booking')
router.register(r'admin', AdminViewSet, basename='admin')  # exposes admin/overview

urlpatterns = router.urls
