"""Account & Data Service contract and reference implementation."""

from parley.service.base import AccountDataService, Ack, EventCallback, SubscriptionHandle
from parley.service.inmemory import InMemoryAccountDataService

__all__ = [
    "AccountDataService",
    "Ack",
    "EventCallback",
    "InMemoryAccountDataService",
    "SubscriptionHandle",
]
