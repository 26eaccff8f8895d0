from .user import User
from .found_item import FoundItem
from .lost_item import LostItem
from .claim import Claim

__all__ = ["User", "FoundItem", "LostItem", "Claim"]
