"""
Sessions Module

Registration sessions run by dispatchers:
1. Creation with schedule validation, unique 3-letter codes and
   same-day overlap rejection
2. Status derived from the schedule (open, closing, closed, completed)
   and refreshed on every read
3. Deletion of completed sessions with their participants

Background Jobs (via APScheduler):
- refresh_session_statuses: periodic status sweep
"""

from .jobs import register_session_jobs
from .router import router

__all__ = ["router", "register_session_jobs"]
