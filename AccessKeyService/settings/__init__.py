"""
Settings for the access key service.

Pick one with DJANGO_SETTINGS_MODULE:
- base.py: shared settings, ACCESS_KEYS options, Stripe and email
- dev.py: local development (optional SQLite, console email)
- test.py: pytest (in-memory SQLite, eager Celery, locmem mail)
- prod.py: production hardening and file logging
"""
