"""Enums for conversation domain."""

from enum import Enum


class MessageKind(str, Enum):
    """Payload variant carried by a message."""

    TEXT = "text"
    IMAGE = "image"
    FILE = "file"


class DeliveryState(str, Enum):
    """Persistence hand-off state of a message.

    Locally sent messages start PENDING and move to SENT or FAILED exactly
    once. Messages received from the live feed start SENT.
    """

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
