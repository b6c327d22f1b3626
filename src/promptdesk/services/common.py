from __future__ import annotations
import math
import re
from dataclasses import dataclass
from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")

_NON_SLUG = re.compile(r"[^a-z0-9]")


def generate_slug(name: str) -> str:
    """Lowercase, split on anything outside [a-z0-9], join the pieces with '-'."""
    return "-".join(part for part in _NON_SLUG.split(name.lower()) if part)


def unique_slug(base: str, taken: Callable[[str], bool]) -> str:
    """First of base, base-2, base-3, ... that is not taken."""
    slug = base
    attempt = 1
    while taken(slug):
        attempt += 1
        slug = f"{base}-{attempt}"
    return slug


@dataclass
class Page(Generic[T]):
    items: List[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


def offset_for(page: int, page_size: int) -> int:
    return (page - 1) * page_size
