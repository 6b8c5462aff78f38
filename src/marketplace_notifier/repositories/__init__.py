from .buffer import NotificationBuffer
from .reference import load_category_averages
from .seen_store import SeenStore

__all__ = ["NotificationBuffer", "SeenStore", "load_category_averages"]
