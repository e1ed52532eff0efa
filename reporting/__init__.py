"""Reporting package: report file, JSON export, email and console output."""
from reporting.delivery import EMAIL_SUBJECT, ReportDelivery, remove_stale_report

__all__ = [
    'EMAIL_SUBJECT',
    'ReportDelivery',
    'remove_stale_report',
]
