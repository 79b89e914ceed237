"""
Notification Sync Client

Keeps a user's chat, consent-request and one-way notification lists in sync
with the notification service, combining REST queries with a STOMP push
channel.
"""

__version__ = "0.1.0"
