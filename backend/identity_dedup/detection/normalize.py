"""Canonical forms for identity attributes."""

from __future__ import annotations

import re


_PHONE_JUNK_RE = re.compile(r"[^0-9+]")


def normalize_email(email: str) -> str:
    """Lowercase and trim an email address."""

    return email.strip().lower()


def normalize_phone(phone: str | None) -> str | None:
    """Keep digits and a leading ``+``; ``None`` when nothing is left."""

    if not phone:
        return None
    kept = _PHONE_JUNK_RE.sub("", phone)
    if not kept:
        return None
    # Only a leading plus survives: "+1 (555) +12" -> "+155512".
    return kept[0] + kept[1:].replace("+", "")
