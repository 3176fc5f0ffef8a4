from .user import user
from .tenant import tenant

__all__ = ["user", "tenant"]
