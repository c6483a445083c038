# Celery instance is defined in books_project/celery.py
# Importing it here makes sure the app is loaded when Django starts,
# so @shared_task functions in ledger_core bind to it.
from .celery import celery_app

__all__ = ("celery_app",)

""" Workers run with "celery -A books_project worker -l info" """
