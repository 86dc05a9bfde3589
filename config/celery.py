import os
from celery import Celery
from celery.schedules import crontab

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

app.conf.beat_schedule = {
    "reconcile-order-hostels": {
        "task": "apps.locations.tasks.reconcile_hostels",
        # Nightly at 02:30 server time
        "schedule": crontab(minute=30, hour=2),
    },
}
