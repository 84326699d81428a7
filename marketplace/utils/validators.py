"""
Validation helpers shared by schemas and routers.
"""

import enum
from typing import Iterable, List, Optional, Type, TypeVar
from urllib.parse import urlparse

from marketplace.models.amenity import normalize_amenity_code
from marketplace.utils.exceptions import ValidationError

EnumType = TypeVar("EnumType", bound=enum.Enum)


def parse_enum_param(enum_cls: Type[EnumType], value: Optional[str], field_name: str) -> Optional[EnumType]:
    """
    Convert a query-string value to an enum member, ignoring case.

    Raises:
        ValidationError: If the value is not a member name
    """
    if value is None or not value.strip():
        return None
    try:
        return enum_cls(value.strip().upper())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"Invalid {field_name}: {value}. Must be one of: {allowed}",
            field_errors=[{"field": field_name, "message": f"Must be one of: {allowed}"}],
        )


def validate_http_url(value: str) -> str:
    """Check that a string is an absolute http(s) URL and return it stripped."""
    url = value.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid URL: {value}")
    return url


def normalize_amenity_codes(values: Iterable[str]) -> List[str]:
    """Normalise amenity names to codes, dropping blanks and duplicates but keeping order."""
    codes = []
    for value in values:
        code = normalize_amenity_code(value)
        if code and code not in codes:
            codes.append(code)
    return codes
