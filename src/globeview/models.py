"""Domain models shared across globe modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence


LonLat = tuple[float, float]
Ring = tuple[LonLat, ...]


def _require_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _key_tuple(value: Any, field_name: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return (_require_str(value, field_name),)
    if not isinstance(value, list) or not value:
        raise ValueError(f"Expected string or non-empty list for '{field_name}'")
    return tuple(_require_str(item, f"{field_name}[{idx}]") for idx, item in enumerate(value))


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True, slots=True)
class FeatureMetadata:
    """Name and ISO codes extracted from one GeoJSON feature."""

    name: str
    iso2: str | None = None
    iso3: str | None = None


@dataclass(frozen=True, slots=True)
class PropertyMapping:
    """Ordered candidate property keys used to read feature metadata.

    The first key holding a non-empty value wins, so several GeoJSON schemas
    can be served by one mapping.
    """

    name_keys: tuple[str, ...] = ("name",)
    iso2_keys: tuple[str, ...] = ("ISO3166-1-Alpha-2",)
    iso3_keys: tuple[str, ...] = ("ISO3166-1-Alpha-3",)
    default_name: str = "Country"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PropertyMapping:
        defaults = cls()
        return cls(
            name_keys=(
                _key_tuple(data["name"], "data.properties.name")
                if data.get("name") is not None
                else defaults.name_keys
            ),
            iso2_keys=(
                _key_tuple(data["iso2"], "data.properties.iso2")
                if data.get("iso2") is not None
                else defaults.iso2_keys
            ),
            iso3_keys=(
                _key_tuple(data["iso3"], "data.properties.iso3")
                if data.get("iso3") is not None
                else defaults.iso3_keys
            ),
            default_name=(
                _require_str(data["default_name"], "data.properties.default_name")
                if data.get("default_name") is not None
                else defaults.default_name
            ),
        )

    def extract(self, properties: Mapping[str, Any] | None) -> FeatureMetadata:
        props = properties if isinstance(properties, Mapping) else {}
        name = _first_value(props, self.name_keys) or self.default_name
        return FeatureMetadata(
            name=name,
            iso2=_first_value(props, self.iso2_keys),
            iso3=_first_value(props, self.iso3_keys),
        )


def _first_value(props: Mapping[str, Any], keys: Sequence[str]) -> str | None:
    for key in keys:
        value = _optional_str(props.get(key))
        if value is not None:
            return value
    return None


@dataclass(frozen=True, slots=True)
class CountryEntry:
    """One country index record: centroid plus codes and display name."""

    lon: float
    lat: float
    display_name: str
    iso2: str | None = None
    iso3: str | None = None

    def describe(self) -> str:
        parts = []
        if self.iso2:
            parts.append(f"ISO-2: {self.iso2}")
        if self.iso3:
            parts.append(f"ISO-3: {self.iso3}")
        return " • ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "display_name": self.display_name,
            "lon": self.lon,
            "lat": self.lat,
            "iso2": self.iso2,
            "iso3": self.iso3,
        }
