"""
    Caption/tag encoding for object metadata.

    Object metadata is a flat string-to-string mapping, so the ordered tag list
    is spread over contiguous keys: Caption, Tag0, Tag1, ... TagN-1. Key names
    are compared case-insensitively on read because S3 hands user metadata
    back lowercased.
"""
import re
from typing import Dict, List, Optional, Set, Tuple

CAPTION_KEY = "Caption"
TAG_PREFIX = "Tag"

_TAG_KEY = re.compile(r"^tag(\d+)$", re.IGNORECASE)


def encode_metadata(caption: str, tags: List[str]) -> Dict[str, str]:
    metadata = {CAPTION_KEY: caption}
    for i, tag in enumerate(tags):
        metadata[f"{TAG_PREFIX}{i}"] = tag
    return metadata


def decode_metadata(metadata: Dict[str, str], fallback: str) -> Tuple[str, Set[str]]:
    """Returns (caption, tags). Caption falls back to the object key when unset."""
    caption = fallback
    tags = set()
    for key, value in metadata.items():
        if key.lower() == CAPTION_KEY.lower():
            caption = value
        elif _TAG_KEY.match(key):
            tags.add(value)
    return caption, tags


def ordered_tags(metadata: Dict[str, str]) -> List[str]:
    """Tags in their stored (relevance) order."""
    indexed = []
    for key, value in metadata.items():
        m = _TAG_KEY.match(key)
        if m:
            indexed.append((int(m.group(1)), value))
    return [value for _, value in sorted(indexed)]


def matches_tag(metadata: Dict[str, str], term: Optional[str]) -> bool:
    if not term:
        return True
    needle = term.casefold()
    return any(
        key.lower().startswith(TAG_PREFIX.lower()) and value.casefold() == needle
        for key, value in metadata.items()
    )
