"""Identifier generation for requests and Signal K resources."""
from __future__ import annotations

import uuid

SIGNALK_UUID_PREFIX: str = "urn:mrn:signalk:uuid:"


def new_uuid() -> str:
    """Return a random version-4 UUID in canonical 8-4-4-4-12 form."""
    return str(uuid.uuid4())


def new_signalk_uuid() -> str:
    """Return a version-4 UUID in Signal K MRN form."""
    return f"{SIGNALK_UUID_PREFIX}{new_uuid()}"
