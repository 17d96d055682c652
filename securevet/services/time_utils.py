from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from securevet.core.config import settings


def clinic_today() -> date:
    """
    Current calendar day at the clinic.
    Booking rules compare against this, not the server's local date.
    """
    return datetime.now(ZoneInfo(settings.CLINIC_TIMEZONE)).date()


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def appointment_sort_key(appt):
    """
    Orders appointments by day then clock time.
    Accepts dicts or models; dates are stored as "YYYY-MM-DD", times as "HH:MM".
    """
    if isinstance(appt, dict):
        return (appt.get("date") or "", appt.get("time") or "")
    return (appt.date or "", appt.time or "")
