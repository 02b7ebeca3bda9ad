"""
TIME INFORMATION UTILITY
========================

Small helpers for the three ways the chat uses time:
  - get_time_millis(): integer ms since the epoch, used to build message ids.
  - utc_timestamp(): ISO-8601 UTC string sent to the webhook as "timestamp".
  - format_display_time(): "HH:MM" shown next to each message.
"""

import datetime
import time


def get_time_millis() -> int:
    return round(time.time() * 1000)


def utc_timestamp() -> str:
    """Return the current UTC time as e.g. 2026-02-05T14:03:11.512Z."""
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def format_display_time(moment: datetime.datetime) -> str:
    """Hour and minute only, 24h. Display only; never used for ordering."""
    return moment.strftime("%H:%M")
