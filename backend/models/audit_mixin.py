from datetime import datetime

import pytz
from sqlalchemy import Column, DateTime, String

from config import APP_TIMEZONE


def now_local():
    """Aware datetime in APP_TIMEZONE; used as the default for every timestamp column."""
    return datetime.now(pytz.timezone(APP_TIMEZONE))


def business_today():
    """Calendar date in APP_TIMEZONE; due dates and overdue checks compare against it."""
    return now_local().date()


class TimestampMixin:
    """created/updated stamps plus the identifier of who made the change.

    Master data (customers, vendors, products, categories, account groups) uses
    only this mixin and is hard deleted.
    """
    created_at = Column(DateTime(timezone=True), default=now_local)
    updated_at = Column(DateTime(timezone=True), onupdate=now_local)
    created_by = Column(String, nullable=True)
    updated_by = Column(String, nullable=True)


class SoftDeleteMixin:
    # A non-null deleted_at hides the row from ordinary queries, see database.py
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)
    deleted_by = Column(String, nullable=True)


class AuditMixin(TimestampMixin, SoftDeleteMixin):
    """Documents that can be deleted and later restored: orders, invoices, payments,
    returns, income and expenses."""
