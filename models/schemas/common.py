import math
import re

from marshmallow import ValidationError, fields

LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)

_POLYGON_RE = re.compile(r"^\s*POLYGON\s*\((.*)\)\s*$", re.IGNORECASE | re.DOTALL)
_RING_RE = re.compile(r"\(([^()]*)\)")


def parse_coordinate(value, low: float, high: float, name: str = "coordinate") -> float:
    """
    Accept a number or a string using either '.' or ',' as the decimal
    separator ("48,15" == "48.15"), and check it lies in [low, high].
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {name} value: '{value}'.")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", "."))
        except ValueError:
            raise ValidationError(f"Invalid {name} value: '{value}'.")
    else:
        raise ValidationError(f"Invalid {name} value: '{value}'.")

    if not math.isfinite(number) or not (low <= number <= high):
        raise ValidationError(f"{name} must be between {low:g} and {high:g}.")
    return number


class Coordinate(fields.Field):
    """Float field that also accepts comma-decimal strings."""

    def __init__(self, low: float, high: float, **kwargs):
        self.low = low
        self.high = high
        super().__init__(**kwargs)

    def _serialize(self, value, attr, obj, **kwargs):
        return value

    def _deserialize(self, value, attr, data, **kwargs):
        return parse_coordinate(value, self.low, self.high, name=attr or "coordinate")


def _format_number(value: float) -> str:
    return str(int(value)) if value.is_integer() else repr(value)


def _parse_ring(raw: str) -> list:
    points = []
    for chunk in raw.split(","):
        parts = chunk.split()
        if len(parts) != 2:
            raise ValidationError("Each polygon point must have exactly two coordinates.")
        try:
            x, y = float(parts[0]), float(parts[1])
        except ValueError:
            raise ValidationError(f"Invalid polygon point: '{chunk.strip()}'.")
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValidationError(f"Invalid polygon point: '{chunk.strip()}'.")
        points.append((x, y))
    if len(points) < 4:
        raise ValidationError("Polygon rings need at least four points.")
    if points[0] != points[-1]:
        raise ValidationError("Polygon rings must be closed.")
    return points


def normalize_polygon_wkt(raw) -> str:
    """
    Validate a WKT POLYGON (outer ring plus optional holes) and return it
    in a canonical spelling, e.g. 'POLYGON ((0 0, 1 0, 1 1, 0 0))'.
    """
    if not isinstance(raw, str):
        raise ValidationError("Geometry must be a WKT string.")
    match = _POLYGON_RE.match(raw)
    if not match:
        raise ValidationError("Geometry must be a WKT POLYGON.")

    body = match.group(1).strip()
    rings_raw = _RING_RE.findall(body)
    # anything left besides ring separators is malformed (nested parens, junk)
    leftover = _RING_RE.sub("", body).replace(",", "").strip()
    if not rings_raw or leftover:
        raise ValidationError("Invalid polygon ring syntax.")

    rings = [_parse_ring(r) for r in rings_raw]
    rendered = ", ".join(
        "(" + ", ".join(f"{_format_number(x)} {_format_number(y)}" for x, y in ring) + ")"
        for ring in rings
    )
    return f"POLYGON ({rendered})"


class PolygonWKT(fields.String):
    """String field holding a WKT polygon, normalized on load."""

    def _deserialize(self, value, attr, data, **kwargs):
        return normalize_polygon_wkt(super()._deserialize(value, attr, data, **kwargs))
