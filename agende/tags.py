"""Tag identity.

A tag's id is a pure function of its display name, so the same name typed on
two different customers always yields the same tag.
"""
import re
from typing import Iterable, List

from agende.models import Customer, Tag

_WHITESPACE = re.compile(r"\s+")


def tag_id_for(name: str) -> str:
    """Lowercase the name and collapse each whitespace run into a hyphen."""
    return _WHITESPACE.sub("-", name.strip().lower())


def make_tag(name: str) -> Tag:
    """Build a Tag from a display name."""
    clean_name = " ".join(name.split())
    if not clean_name:
        raise ValueError("Tag name cannot be empty")
    return Tag(id=tag_id_for(clean_name), name=clean_name)


def dedupe_tags(tags: Iterable[Tag]) -> List[Tag]:
    """Keep the first tag seen for each id, in input order."""
    seen = set()
    unique = []
    for tag in tags:
        if tag.id and tag.id not in seen:
            seen.add(tag.id)
            unique.append(tag)
    return unique


def unique_tags(customers: Iterable[Customer]) -> List[Tag]:
    """All tags used across customers, deduplicated by id and sorted by name."""
    all_tags = dedupe_tags(tag for customer in customers for tag in customer.tags)
    return sorted(all_tags, key=lambda tag: tag.name.lower())
