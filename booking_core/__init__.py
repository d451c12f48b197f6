"""
Booking Core
============

Appointment scheduling engine for service providers and their customers.

This package provides:
- Weekly availability and slot generation
- Conflict-free booking and appointment lifecycle
- Role-scoped access for admins, providers and customers
- Slot recommendations
- A transport-neutral API layer
"""

__version__ = "1.0.0"
