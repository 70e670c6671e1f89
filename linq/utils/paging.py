"""Listing parameters shared by repositories and blueprints."""
from dataclasses import dataclass
from typing import Optional

DEFAULT_PAGE_LENGTH = 25


@dataclass
class Paging:
    """
    Window and filter for a listing.

    ``length <= 0`` means the default page size, never "unbounded".
    ``order`` selects a repository-specific column; 0 keeps store order.
    """
    start: int = 0
    length: int = 0
    keyword: str = ''
    order: int = 0
    order_dir: str = 'asc'

    @property
    def limit(self) -> int:
        return self.length if self.length > 0 else DEFAULT_PAGE_LENGTH

    @property
    def offset(self) -> int:
        return max(self.start, 0)

    @property
    def descending(self) -> bool:
        return (self.order_dir or '').lower() == 'desc'

    @classmethod
    def from_args(cls, args, default_length: Optional[int] = None) -> 'Paging':
        """Build from request query args (``start``, ``length``, ``keyword``, ``order``, ``orderDir``)."""
        def as_int(name, default=0):
            try:
                return int(args.get(name, default))
            except (TypeError, ValueError):
                return default

        length = as_int('length')
        if length <= 0 and default_length:
            length = default_length
        return cls(
            start=as_int('start'),
            length=length,
            keyword=(args.get('keyword') or '').strip(),
            order=as_int('order'),
            order_dir=args.get('orderDir') or args.get('order_dir') or 'asc',
        )
