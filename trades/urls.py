"""
Trades — URL Configuration

@file trades/urls.py
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import TradeViewSet

app_name = 'trades'

router = SimpleRouter()
router.register('', TradeViewSet, basename='trade')

urlpatterns = [
    path('', include(router.urls)),
]
