"""Road and carriageway codes as written in the DRIPS table and the MSI feed."""

from __future__ import annotations

import re
from typing import Optional


_ROAD_CODE_RE = re.compile(r"^([ANSR])\s*0*(\d{1,3})$")

_CARRIAGEWAYS = {"L": "L", "R": "R", "LI": "L", "RE": "R", "HRL": "L", "HRR": "R"}


def normalize_road(value: Optional[str]) -> Optional[str]:
    """Canonical road code: upper case, no inner spaces, no zero padding ("a 028" -> "A28").

    Codes that do not look like a road letter plus number are upper-cased and kept.
    """

    if not value:
        return None
    code = value.strip().upper()
    match = _ROAD_CODE_RE.match(code)
    if match:
        return f"{match.group(1)}{int(match.group(2))}"
    return code or None


def normalize_carriageway(value: Optional[str]) -> Optional[str]:
    """Collapse L/R, Li/Re and main carriageway HRL/HRR to "L" or "R"; other codes pass through."""

    if not value:
        return None
    code = value.strip().upper()
    return _CARRIAGEWAYS.get(code, code) or None
