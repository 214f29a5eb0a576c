"""
Agenda: appointment scheduling and work-calendar conflict resolution service.
"""

__version__ = "0.1.0"
