"""
Validation Keys Module

Short keys confirming a pilot's attendance, unique within a rolling
two-month window (current and previous month tag).
"""
