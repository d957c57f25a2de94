"""Domain models shared with the persistence and web layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class User:
    """A user account as carried between layers.

    Every attribute is optional so a record can be built empty and filled in
    later, or built from the sign-up form before the database assigns an id.
    Values are stored exactly as given; validating them is left to callers.
    """

    id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)


__all__ = ["User"]
