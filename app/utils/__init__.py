"""
UTILITIES PACKAGE
=================

Helpers used by the services (no HTTP, no business logic):

  time_info - get_time_millis(), utc_timestamp(), format_display_time().
"""
