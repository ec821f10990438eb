"""Ordering of people by register number."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

SortKey = Tuple[int, int, str]


@dataclass(frozen=True)
class RegisterIdentity:
    """A person's display name and (possibly empty) register number."""

    name: str
    register_number: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "registerNumber": self.register_number}

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "RegisterIdentity":
        register_number = data.get("registerNumber") or ""
        return cls(name=str(data["name"]), register_number=str(register_number))


def parse_register_number(value: str) -> Optional[int]:
    """Return the integer value of a purely numeric register number."""

    text = value.strip()
    if not text or "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def register_sort_key(identity: RegisterIdentity) -> SortKey:
    """Numeric register numbers first, then other register numbers, then names."""

    if not identity.register_number:
        return (2, 0, identity.name.lower())
    number = parse_register_number(identity.register_number)
    if number is not None:
        return (0, number, "")
    return (1, 0, identity.register_number.lower())


def compare_identities(a: RegisterIdentity, b: RegisterIdentity) -> int:
    key_a, key_b = register_sort_key(a), register_sort_key(b)
    return (key_a > key_b) - (key_a < key_b)


def sort_identities(identities: Iterable[RegisterIdentity]) -> List[RegisterIdentity]:
    return sorted(identities, key=register_sort_key)


def roster_names(identities: Iterable[RegisterIdentity]) -> Dict[str, str]:
    """Map register numbers to display names, skipping people without one."""

    return {identity.register_number: identity.name for identity in identities if identity.register_number}
