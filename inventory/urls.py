"""
Inventory — URL Configuration

@file inventory/urls.py
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import AllocationViewSet, LotViewSet, MatchingViewSet

app_name = 'inventory'

router = DefaultRouter()
router.register('lots', LotViewSet, basename='lot')
router.register('matching', MatchingViewSet, basename='matching')
router.register('allocations', AllocationViewSet, basename='allocation')

urlpatterns = [
    path('', include(router.urls)),
]
