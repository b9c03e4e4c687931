"""Parley: client-side core of a direct-messaging application.

Owns identity, session state, conversations, presence and live event
intake. Presentation layers read snapshots from a SessionOrchestrator and
invoke its actions; all remote work goes through an AccountDataService.
"""

__version__ = "0.1.0"
