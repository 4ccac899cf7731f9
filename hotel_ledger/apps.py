from django.apps import AppConfig


class HotelLedgerConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'hotel_ledger'
    verbose_name = 'Hotel ledger'
