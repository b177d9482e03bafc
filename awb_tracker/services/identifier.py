# services/identifier.py

"""
MAWB identifier parsing
"""

import re

from awb_tracker.models.tracking import MawbParts

# Unanchored on purpose: an identifier embedded in a longer cell still matches
MAWB_PATTERN = re.compile(r"(\d{3})[- ]?(\d{8})", re.ASCII)

INVALID_MAWB = MawbParts("", "")


def split_mawb(raw: str) -> MawbParts:
    """Split a raw MAWB into (prefix, awb_no); both empty means rejected

    "123-45678901" splits on the hyphen verbatim. Anything else is searched for
    three digits followed by eight digits.
    """
    mawb = re.sub(r"\s", "", (raw or "").strip())

    parts = mawb.split("-")
    if len(parts) == 2 and parts[0] and parts[1]:
        return MawbParts(parts[0], parts[1])

    match = MAWB_PATTERN.search(mawb)
    if match:
        return MawbParts(match.group(1), match.group(2))

    return INVALID_MAWB
