"""Function selector → human label for transactions paying into the treasury."""

FUNCTION_SELECTORS: dict[str, str] = {
    "0x2c7fa5d8": "Part evolution",
    "0x6e094ff4": "Ascend",
    "0x95a4ec00": "Marketplace",
    "0x2beee4c7": "Marketplace (bulk)",
    "0x8264f2c2": "Breed",
    "0x8aff15ec": "Charm/Rune mint",
    "0x7ff36ab5": "Mint",
    "0xa9059cbb": "Transfer",
    "0x43afef80": "Restore Streak for Atia's Blessing",
}

UNKNOWN_FUNCTION = "Unknown"


def label_for_input(input_data: str | None) -> str:
    """Label a transaction by the selector at the start of its input data.

    Unrecognised selectors come back verbatim (``0x``-prefixed hex); a
    transaction without input data is ``"Unknown"``.
    """
    if not input_data or input_data in ("0x", "0X"):
        return UNKNOWN_FUNCTION
    selector = input_data[:10]
    return FUNCTION_SELECTORS.get(selector.lower(), selector)
