# app/api/__init__.py
# This file makes the api directory a Python package.

from . import auth
from . import course
from . import review
from . import schedule

__all__ = [
    "auth",
    "course",
    "review",
    "schedule",
]
