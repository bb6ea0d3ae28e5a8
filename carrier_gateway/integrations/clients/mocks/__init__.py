"""
Mock integration clients.

Used for local development and tests when carrier credentials are not
available. They implement the carrier HTTP surface the real clients talk to,
so flows do not know whether they are talking to a mock.
"""

from .carriers import MockCarrierBackend

__all__ = ["MockCarrierBackend"]
