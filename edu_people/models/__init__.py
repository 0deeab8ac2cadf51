from .person import (
    ALL_SERVICES,
    Permission,
    PermissionEntry,
    PermissionView,
    Person,
    PersonInput,
    PersonView,
    is_all_services,
)

__all__ = [
    "ALL_SERVICES",
    "Permission",
    "PermissionEntry",
    "PermissionView",
    "Person",
    "PersonInput",
    "PersonView",
    "is_all_services",
]
