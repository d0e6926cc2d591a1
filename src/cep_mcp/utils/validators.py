"""Validation utilities and parameter classes."""

import os
from dataclasses import dataclass

# Admin SDK Reports caps maxResults at 1000 per page
MAX_PAGE_SIZE = 1000

DEFAULT_WINDOW_DAYS = int(os.environ.get("FLEET_WINDOW_DAYS", "7"))
DEFAULT_PAGE_SIZE = int(os.environ.get("FLEET_PAGE_SIZE", "1000"))
DEFAULT_MAX_PAGES = int(os.environ.get("FLEET_MAX_PAGES", "10"))
DEFAULT_SAMPLE_SIZE = int(os.environ.get("FLEET_SAMPLE_SIZE", "50"))


@dataclass(frozen=True)
class WindowParams:
    """Immutable parameters for a windowed event summary."""

    window_days: int = DEFAULT_WINDOW_DAYS
    page_size: int = DEFAULT_PAGE_SIZE
    max_pages: int = DEFAULT_MAX_PAGES
    sample_size: int = DEFAULT_SAMPLE_SIZE

    def __post_init__(self) -> None:
        if self.window_days < 1:
            raise ValueError(f"Invalid window_days {self.window_days}. Must be >= 1")
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ValueError(
                f"Invalid page_size {self.page_size}. Must be between 1 and {MAX_PAGE_SIZE}"
            )
        if self.max_pages < 1:
            raise ValueError(f"Invalid max_pages {self.max_pages}. Must be >= 1")
        if self.sample_size < 0:
            raise ValueError(f"Invalid sample_size {self.sample_size}. Must be >= 0")


def clamp_sample_size(value: int | None, default: int = DEFAULT_SAMPLE_SIZE) -> int:
    """
    Clamp a caller-supplied sample size to a usable value.

    Args:
        value: Requested sample size (may be None)
        default: Value used when none is requested

    Returns:
        Non-negative sample size
    """
    if value is None:
        return default
    return max(0, int(value))
