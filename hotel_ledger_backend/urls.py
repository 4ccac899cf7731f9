from django.urls import path, include
from hotel_ledger.views import health_check, welcome

urlpatterns = [
    path('health', health_check, name='health'),
    path('', welcome, name='welcome'),
    path('api/', include('hotel_ledger.urls')),
]

handler404 = 'hotel_ledger.views.not_found'
handler500 = 'hotel_ledger.views.server_error'
