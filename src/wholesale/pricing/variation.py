"""Variation identity for cart lines.

A line's selected variation is either a set of explicit fields (color, size,
material, style), a generic ordered list of name/value attributes, a catalogue
variant id/name, or nothing at all ("standard product"). ``VariationKey``
folds all of them into one comparable value.
"""

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar

# Placeholder value the catalogue uses for "no selection"
DEFAULT_VALUE = "default"


def is_meaningful(value: str | None) -> bool:
    """True when a variation value is set and is not the catalogue placeholder."""
    return bool(value) and value != DEFAULT_VALUE


@dataclass(frozen=True)
class VariationAttribute:
    name: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True)
class VariationKey:
    """Canonical identity of a line item's selected product variation."""

    EXPLICIT_FIELDS: ClassVar[tuple[str, ...]] = ("color", "size", "material", "style")

    variant_id: str | None = None
    variant_name: str | None = None
    color: str | None = None
    size: str | None = None
    material: str | None = None
    style: str | None = None
    attributes: tuple[VariationAttribute, ...] = field(default_factory=tuple)

    @classmethod
    def build(
        cls,
        variant_id=None,
        variant_name=None,
        color=None,
        size=None,
        material=None,
        style=None,
        attributes=None,
    ) -> "VariationKey":
        """Build a key from loosely-typed input, treating empty strings as unset."""
        return cls(
            variant_id=str(variant_id) if variant_id else None,
            variant_name=variant_name or None,
            color=color or None,
            size=size or None,
            material=material or None,
            style=style or None,
            attributes=parse_attributes(attributes),
        )

    def explicit_values(self) -> list[tuple[str, str]]:
        """Explicit (field, value) pairs in display order, placeholders skipped."""
        return [(name, getattr(self, name)) for name in self.EXPLICIT_FIELDS if is_meaningful(getattr(self, name))]

    @property
    def is_standard(self) -> bool:
        """True when nothing distinguishes this selection from the plain product."""
        return (
            not self.variant_id
            and not self.explicit_values()
            and not any(is_meaningful(a.value) for a in self.attributes)
        )

    @property
    def key(self) -> str:
        """Stable string identity; attribute order does not matter."""
        parts = [f"variant={self.variant_id or ''}"]
        parts.extend(f"{name}={value.lower()}" for name, value in self.explicit_values())
        attrs = sorted(
            (a.name.lower(), a.value.lower()) for a in self.attributes if is_meaningful(a.value)
        )
        parts.extend(f"attr:{name}={value}" for name, value in attrs)
        return ";".join(parts)

    def attributes_json(self) -> str:
        return json.dumps([a.to_dict() for a in self.attributes])


def parse_attributes(raw: Any) -> tuple[VariationAttribute, ...]:
    """Accept a JSON string, a list of dicts, or VariationAttribute instances."""
    if not raw:
        return ()
    if isinstance(raw, str):
        raw = json.loads(raw)

    attributes = []
    for entry in raw:
        if isinstance(entry, VariationAttribute):
            attributes.append(entry)
        else:
            attributes.append(VariationAttribute(name=str(entry["name"]), value=str(entry["value"])))
    return tuple(attributes)
