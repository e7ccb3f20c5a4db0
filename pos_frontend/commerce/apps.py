# commerce/apps.py

"""
COMMERCE APP CONFIG

Remote commerce API integration:
- JSON client for the cart/customer API
- Transport + rejection error types

No models: the remote API owns every cart, line and customer record.
"""

from django.apps import AppConfig


class CommerceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "commerce"
    verbose_name = "Remote Commerce API"
