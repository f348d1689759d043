"""Page arithmetic shared by list endpoints."""

import math
from dataclasses import dataclass

from app.models import PagingHeader

DEFAULT_PAGE_NUMBER = 1
DEFAULT_PAGE_SIZE = 5


@dataclass
class Paging:
    page_number: int = DEFAULT_PAGE_NUMBER
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return self.page_size * (self.page_number - 1)


def build_paging_header(page_number: int, page_size: int, total_count: int) -> PagingHeader:
    """
    Describe the navigation state of one page.
    Pure function: inputs are trusted, callers apply defaults and bounds.
    """
    total_page = math.ceil(total_count / page_size)
    has_prev_page = page_number > 1
    has_next_page = page_number < total_page

    return PagingHeader(
        page_number=page_number,
        page_size=page_size,
        total_count=total_count,
        total_page=total_page,
        has_prev_page=has_prev_page,
        has_next_page=has_next_page,
        prev_page_number=page_number - 1 if has_prev_page else 1,
        next_page_number=page_number + 1 if has_next_page else total_page,
    )
