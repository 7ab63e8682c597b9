"""
events.py
Typed payloads sent upward from list items to their container.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ContactSelected:
    pubkey: str


@dataclass(frozen=True)
class ContactRemoveRequested:
    pubkey: str
