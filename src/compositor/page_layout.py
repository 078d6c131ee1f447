"""Page numbering for proposal documents.

A proposal renders as, in order:

1. one intro page
2. ``ceil(len(products) / layout)`` site pages, each holding a contiguous
   slice of ``products``
3. one page per custom page, in list order
4. one outro page

Page numbers are 1-based. Every function here is pure.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Sequence

from .errors import InvalidLayoutError
from .models import CustomPage, SiteRecord


class PageKind(str, Enum):
    INTRO = "intro"
    SITES = "sites"
    CUSTOM = "custom"
    OUTRO = "outro"


@dataclass
class PlannedPage:
    """One page of the rendered proposal."""

    number: int
    kind: PageKind
    sites: List[SiteRecord] = field(default_factory=list)
    custom_page: Optional[CustomPage] = None


def parse_layout(value: Any) -> int:
    """Return the sites-per-page count for a stored layout value.

    Raises:
        InvalidLayoutError: If the value is not an integer >= 1
    """
    if isinstance(value, bool):
        raise InvalidLayoutError(f"Invalid layout: {value!r}")
    if isinstance(value, int):
        layout = value
    else:
        try:
            layout = int(str(value).strip())
        except ValueError as exc:
            raise InvalidLayoutError(f"Invalid layout: {value!r}") from exc
    if layout < 1:
        raise InvalidLayoutError(f"Layout must be at least 1 site per page, got {layout}")
    return layout


def site_page_count(products: Sequence[SiteRecord], layout: int) -> int:
    return math.ceil(len(products) / parse_layout(layout))


def total_pages(products: Sequence[SiteRecord], custom_pages: Sequence[CustomPage], layout: int) -> int:
    """Intro + site pages + custom pages + outro."""
    return 2 + site_page_count(products, layout) + len(custom_pages)


def content_for_page(page_number: int, products: Sequence[SiteRecord], layout: int) -> List[SiteRecord]:
    """Return the sites shown on a page, or [] for any page that is not a site page."""
    layout = parse_layout(layout)
    site_page_number = page_number - 1
    if site_page_number < 1 or site_page_number > site_page_count(products, layout):
        return []
    start = (site_page_number - 1) * layout
    return list(products[start : start + layout])


def custom_page_for_page_number(
    page_number: int,
    products: Sequence[SiteRecord],
    custom_pages: Sequence[CustomPage],
    layout: int,
) -> Optional[CustomPage]:
    custom_index = page_number - 2 - site_page_count(products, layout)
    if 0 <= custom_index < len(custom_pages):
        return custom_pages[custom_index]
    return None


def page_kind(
    page_number: int,
    products: Sequence[SiteRecord],
    custom_pages: Sequence[CustomPage],
    layout: int,
) -> PageKind:
    last_page = total_pages(products, custom_pages, layout)
    if page_number < 1 or page_number > last_page:
        raise ValueError(f"Page {page_number} is outside 1..{last_page}")
    if page_number == 1:
        return PageKind.INTRO
    if page_number == last_page:
        return PageKind.OUTRO
    if page_number - 1 <= site_page_count(products, layout):
        return PageKind.SITES
    return PageKind.CUSTOM


def plan_pages(
    products: Sequence[SiteRecord], custom_pages: Sequence[CustomPage], layout: int
) -> List[PlannedPage]:
    """Return every page of the document in render order."""
    pages = []
    for number in range(1, total_pages(products, custom_pages, layout) + 1):
        kind = page_kind(number, products, custom_pages, layout)
        pages.append(
            PlannedPage(
                number=number,
                kind=kind,
                sites=content_for_page(number, products, layout) if kind == PageKind.SITES else [],
                custom_page=(
                    custom_page_for_page_number(number, products, custom_pages, layout)
                    if kind == PageKind.CUSTOM
                    else None
                ),
            )
        )
    return pages


def page_price(sites: Sequence[SiteRecord]) -> Decimal:
    """Sum of the prices of the sites on a page."""
    return sum((site.price or Decimal(0) for site in sites), Decimal(0))


def page_title(sites: Sequence[SiteRecord]) -> str:
    """Short label for a page built from its site codes."""
    codes = [site.site_code for site in sites if site.site_code]
    if not codes:
        return "N/A"
    if len(codes) == 1:
        return codes[0]
    if len(codes) == 2:
        return f"{codes[0]} & {codes[1]}"
    return f"{codes[0]} & {len(codes) - 1} more sites"
