# laundry_core/tasks.py
from __future__ import annotations

from celery import shared_task

from laundry_core.workflows.sla_scanner import check_overdue_services


@shared_task
def scan_overdue_services() -> int:
    return check_overdue_services()
