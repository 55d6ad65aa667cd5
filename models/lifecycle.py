from enum import IntEnum


class ActiveState(IntEnum):
    """Soft-delete marker stored as 0/1 on brands and categories."""

    INACTIVE = 0
    ACTIVE = 1
