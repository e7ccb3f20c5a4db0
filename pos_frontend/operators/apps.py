# operators/apps.py

"""
OPERATORS APP CONFIG

Operator session module:
- Open an operator session from a pre-acquired API token
- Read the current operator
- Close (logout) the session

Token acquisition itself happens upstream.
"""

from django.apps import AppConfig


class OperatorsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "operators"
    verbose_name = "POS Operators"
