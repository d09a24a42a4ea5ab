"""
Storage key derivation.

The catalog has no index of its own: every record is found again by
the shape of its key. Keys are date-partitioned by upload month:

    videos/{YYYY}/{MM}/{sanitized-title}.{ext}
    videos/{YYYY}/{MM}/metadata/{sanitized-title}.json

Two uploads whose titles sanitize identically in the same month share
keys, and the later one replaces the earlier one.
"""

import re
from datetime import datetime
from typing import Union

from .errors import InvalidTitleError

VIDEO_PREFIX = "videos/"
METADATA_SEGMENT = "/metadata/"
METADATA_SUFFIX = ".json"
DEFAULT_EXTENSION = "mp4"

# anything that is not a word character, whitespace or hyphen
_DISALLOWED = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")
_METADATA_KEY = re.compile(r"^videos/(\d{4})/(\d{2})/metadata/([^/]+)\.json$")


def sanitize_title(title: str) -> str:
    """
    Turn a title into a key-safe name.

    Lower-cases first so that case mapping can never introduce a
    character the filter would strip on a second pass. Unicode word
    characters (Hangul, accented Latin, ...) are kept. Surrounding
    whitespace is not trimmed, so " cat " becomes "-cat-".

    >>> sanitize_title("My Cat! Video")
    'my-cat-video'
    """
    text = _DISALLOWED.sub("", title.lower())
    return _WHITESPACE.sub("-", text)


def require_sanitized_title(title: str) -> str:
    """sanitize_title, raising InvalidTitleError when the result is empty."""
    safe_title = sanitize_title(title or "")
    if not safe_title:
        raise InvalidTitleError(
            f"Title {title!r} contains no characters usable in a storage key"
        )
    return safe_title


def normalize_tags(tags: Union[str, list[str], None]) -> list[str]:
    """
    Accept tags as a comma-joined string or a list.

    A non-empty string is split on commas and each segment trimmed.
    Empty segments are kept, so "a,,b" gives ["a", "", "b"]. An empty
    string gives no tags. A list passes through unchanged.
    """
    if tags is None:
        return []
    if isinstance(tags, str):
        if not tags:
            return []
        return [tag.strip() for tag in tags.split(",")]
    if isinstance(tags, list):
        return tags
    raise TypeError(f"tags must be a string or a list, not {type(tags).__name__}")


def file_extension(filename: str) -> str:
    """Lower-cased extension of filename, mp4 when there is none."""
    name = (filename or "").replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in name:
        return DEFAULT_EXTENSION
    ext = name.rsplit(".", 1)[-1].lower()
    return ext or DEFAULT_EXTENSION


def month_prefix(moment: datetime) -> str:
    return f"{VIDEO_PREFIX}{moment.year:04d}/{moment.month:02d}/"


def video_key(safe_title: str, ext: str, moment: datetime) -> str:
    return f"{month_prefix(moment)}{safe_title}.{ext}"


def metadata_key(safe_title: str, moment: datetime) -> str:
    return f"{month_prefix(moment)}metadata/{safe_title}{METADATA_SUFFIX}"


def is_metadata_key(key: str) -> bool:
    return METADATA_SEGMENT in key and key.endswith(METADATA_SUFFIX)


def metadata_key_matches(key: str, safe_title: str) -> bool:
    """True if key is videos/<year>/<month>/metadata/<safe_title>.json for any month."""
    match = _METADATA_KEY.match(key)
    return match is not None and match.group(3) == safe_title


def storage_uri(scheme: str, bucket_name: str, key: str) -> str:
    return f"{scheme}://{bucket_name}/{key}"


def public_url(base_url: str, bucket_name: str, key: str) -> str:
    return f"{base_url.rstrip('/')}/{bucket_name}/{key}"
