"""Watch category models and loader exports."""

from .loader import CategoryLoadError, CategoryLoader, load_categories
from .models import DEFAULT_CATEGORIES, ChangeBatch, WatchCategory

__all__ = [
    "ChangeBatch",
    "CategoryLoadError",
    "CategoryLoader",
    "DEFAULT_CATEGORIES",
    "WatchCategory",
    "load_categories",
]
