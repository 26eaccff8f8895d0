from sqlalchemy import Enum

# Allowed values for the enumerated columns. The DB types are created by
# migrations (or create_all); the tuples double as validation sets.

ROLES = ("admin", "user")
ITEM_TYPES = ("Phone", "Laptop", "Tablet", "Smart watch", "ID card", "Other")
FOUND_ITEM_STATUSES = ("reported", "submitted", "claim submitted", "claimed")
# "reported" is what the public form writes; admin views treat it as not found yet.
LOST_ITEM_STATUSES = ("reported", "not_found", "found", "claimed")
CLAIM_STATUSES = ("pending", "approved", "rejected")

role_enum = Enum(*ROLES, name="role_enum")
item_type_enum = Enum(*ITEM_TYPES, name="item_type_enum")
found_item_status_enum = Enum(*FOUND_ITEM_STATUSES, name="found_item_status_enum")
lost_item_status_enum = Enum(*LOST_ITEM_STATUSES, name="lost_item_status_enum")
claim_status_enum = Enum(*CLAIM_STATUSES, name="claim_status_enum")

_ITEM_TYPE_LOOKUP = {t.lower(): t for t in ITEM_TYPES}


def normalize_item_type(value: str | None) -> str | None:
    """Map user input such as "smart watch" to its canonical spelling."""
    if not value:
        return None
    return _ITEM_TYPE_LOOKUP.get(" ".join(value.split()).lower())
