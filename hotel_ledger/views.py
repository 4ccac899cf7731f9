from django.http import JsonResponse
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response

from . import catalog, services
from .serializers import (
    ActivitySerializer,
    BookingRequestSerializer,
    BookingSerializer,
    HotelSerializer,
    RoomSerializer,
)
from .visibility import AdminKeyForSafeMethods, HasAdminKey, is_privileged


def welcome(request):
    return JsonResponse({"status": "ok", "message": "Hotel System backend is running"})

def health_check(request):
    return JsonResponse({"status": "ok"})

def not_found(request, exception=None):
    return JsonResponse({"error": "Not found"}, status=404)

def server_error(request):
    return JsonResponse({"error": "Internal server error"}, status=500)


class HotelViewSet(viewsets.GenericViewSet):
    serializer_class = HotelSerializer
    failure_message = "Failed to load hotels"

    def list(self, request):
        """Hotels with room counts; sold-out hotels only for admins"""
        hotels = catalog.hotels_qs(privileged=is_privileged(request))
        serializer = self.get_serializer(hotels, many=True)
        return Response(serializer.data)


class RoomViewSet(viewsets.GenericViewSet):
    serializer_class = RoomSerializer
    failure_message = "Failed to load rooms"

    def list(self, request):
        """Rooms, optionally for one hotel; occupied rooms only for admins"""
        rooms = catalog.rooms_qs(
            hotel_id=request.query_params.get('hotelId'),
            privileged=is_privileged(request),
        )
        serializer = self.get_serializer(rooms, many=True)
        return Response(serializer.data)


class ActivityViewSet(viewsets.GenericViewSet):
    serializer_class = ActivitySerializer
    failure_message = "Failed to load activities"

    def list(self, request):
        serializer = self.get_serializer(catalog.activities_qs(), many=True)
        return Response(serializer.data)


class BookingViewSet(viewsets.GenericViewSet):
    permission_classes = [AdminKeyForSafeMethods]

    @property
    def failure_message(self):
        if self.action == 'create':
            return "Failed to create booking"
        return "Failed to load bookings"

    def get_serializer_class(self):
        if self.action == 'create':
            return BookingRequestSerializer
        return BookingSerializer

    def list(self, request):
        """All bookings, newest first (admin only)"""
        serializer = self.get_serializer(catalog.bookings_qs(), many=True)
        return Response(serializer.data)

    def create(self, request):
        """Book a room; the room becomes occupied in the same transaction"""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(
            {"message": "Booking confirmed", "booking": serializer.data},
            status=status.HTTP_201_CREATED,
        )


class AdminViewSet(viewsets.GenericViewSet):
    permission_classes = [HasAdminKey]
    failure_message = "Failed to load admin overview"

    @action(detail=False, methods=['get'])
    def overview(self, request):
        """Hotels, rooms, bookings and activities in one response"""
        snapshot = services.build_overview()
        context = self.get_serializer_context()
        return Response({
            'hotels': HotelSerializer(snapshot['hotels'], many=True, context=context).data,
            'rooms': RoomSerializer(snapshot['rooms'], many=True, context=context).data,
            'bookings': BookingSerializer(snapshot['bookings'], many=True, context=context).data,
            'activities': ActivitySerializer(snapshot['activities'], many=True, context=context).data,
        })
