"""
BBS Backend
GraphQL forum service: threads, posts, tags and notifications
"""

__version__ = "0.1.0"

from .config import settings

__all__ = ["settings", "__version__"]
