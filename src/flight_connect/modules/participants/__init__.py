"""
Participants Module

Pilot registrations against sessions. Registration is only accepted
between a session's registration start and closing time.
"""
