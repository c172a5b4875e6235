"""
Photo Frame server.

Keeps every connected viewer in sync with the contents of a shared photo
directory, and lets an authenticated admin add and remove photos.
"""

__version__ = "0.1.0"
