from treasurywatch.domain.enums.drop_reason import DropReason

__all__ = [
    "DropReason",
]
