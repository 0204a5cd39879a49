"""
MarkNote Backend - Markdown notes with realtime co-editing

REST API for personal markdown notes plus a WebSocket layer that lets
several clients edit the same note together.
"""

__version__ = "1.0.0"
