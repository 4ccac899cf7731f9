from django.db import models
from django.core.validators import MinValueValidator

from .fields import ActivityIdListField


class Hotel(models.Model):
    name = models.CharField(max_length=150)
    location = models.CharField(max_length=150)

    class Meta:
        db_table = "hotels"
        ordering = ["id"]

    def __str__(self):
        return self.name


class Room(models.Model):
    class Status(models.TextChoices):
        AVAILABLE = "available"
        OCCUPIED = "occupied"
    hotel = models.ForeignKey(Hotel, on_delete=models.CASCADE, related_name="rooms")
    room_type = models.CharField(max_length=50)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    # only the booking commit in services.py changes this
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.AVAILABLE)

    class Meta:
        db_table = "rooms"
        ordering = ["id"]

    def __str__(self):
        return f"{self.hotel_id}/{self.room_type}"


class Activity(models.Model):
    hotel = models.ForeignKey(Hotel, on_delete=models.CASCADE, related_name="activities")
    name = models.CharField(max_length=100)
    description = models.TextField()
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])

    class Meta:
        db_table = "activities"
        ordering = ["id"]
        verbose_name_plural = "activities"

    def __str__(self):
        return self.name


class Booking(models.Model):
    room = models.ForeignKey(Room, on_delete=models.CASCADE, related_name="bookings")
    guest_name = models.TextField()
    check_in = models.DateField()
    check_out = models.DateField()  # exclusive
    # advisory ids, not foreign keys; may point at any hotel's activities
    activities = ActivityIdListField(default=list)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "bookings"

    def __str__(self):
        return f"{self.guest_name} ({self.check_in} - {self.check_out})"
