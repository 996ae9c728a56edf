from typing import List
from urllib.parse import quote


def split_key(key: str) -> List[str]:
    """Split an object key into its path segments.

    Empty segments (leading, trailing or repeated slashes) are discarded, so that
    joining the segments and splitting them again gives back the same list.

    Args:
        key (str): The raw object key, possibly empty.

    Returns:
        List[str]: The non-empty path segments.
    """
    if not key:
        return []
    return [part for part in key.split("/") if len(part) > 0]


def join_key(parts: List[str]) -> str:
    return "/".join(parts)


def strip_slashes(value: str) -> str:
    """Remove leading and trailing slashes.

    Args:
        value (str): The string to strip, may be None or empty.

    Returns:
        str: The stripped string, or the value itself when it is empty.
    """
    if not value:
        return value
    return value.strip("/")


def join_url(*items: str) -> str:
    """Join URL fragments with a single slash between them, dropping empty fragments."""
    stripped = [strip_slashes(item) for item in items if item]
    return "/".join(item for item in stripped if item)


def quote_parts(parts: List[str]) -> str:
    return quote(join_key(parts), safe="/")
