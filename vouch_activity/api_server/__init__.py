"""
API server package: HTTP interface over the activity service.

Exposes deployed programs and trading volume per wallet; all work is
delegated to vouch_activity.analytics.activity_service.
"""
