"""
TradeLedger — Celery Application

Workers and beat are started with:
  celery -A config worker -l info
  celery -A config beat -l info

@file config/celery.py
"""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

app = Celery('tradeledger')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
