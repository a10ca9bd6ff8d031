"""ContactOut people directory adapter."""

from __future__ import annotations

from .client import ContactOutAPIError, ContactOutClient
from .lookup import ContactOutDirectoryLookup, pick_match
from .schema import ContactOutProfile, ContactOutSearchResponse
from .translator import translate_profile

__all__ = [
    "ContactOutAPIError",
    "ContactOutClient",
    "ContactOutDirectoryLookup",
    "ContactOutProfile",
    "ContactOutSearchResponse",
    "pick_match",
    "translate_profile",
]
