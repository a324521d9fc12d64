"""Shiftcraft rule layer.

Feature modules (users, shifts, leave, schedules, timesheets) each carry a
domain model, a repository interface, a MySQL repository and a service. Services
depend only on the repository interfaces.
"""

__version__ = "0.1.0"
