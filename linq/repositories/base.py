"""Repository interface shared by storage backends."""
from abc import ABC, abstractmethod
from typing import Any, List, Sequence

from linq.utils.paging import Paging


class Repository(ABC):
    """
    Capability set every aggregate repository provides.

    Listing and reads exclude soft-deleted rows. Not-found reads raise
    NotFoundError and store failures raise InfrastructureError.
    """

    @abstractmethod
    def count_all(self) -> int:
        """Number of non-deleted rows."""

    @abstractmethod
    def is_exist(self, id) -> bool:
        """Whether a non-deleted row with ``id`` exists."""

    @abstractmethod
    def get_all(self, paging: Paging) -> List[Any]:
        """One page of non-deleted aggregates."""

    @abstractmethod
    def get(self, id) -> Any:
        """Single non-deleted aggregate."""

    @abstractmethod
    def insert(self, model) -> Any:
        """Persist a new aggregate; the repository assigns its identifier."""

    @abstractmethod
    def update(self, model) -> Any:
        """Persist mutable fields of an existing aggregate."""

    @abstractmethod
    def delete(self, model) -> None:
        """Soft-delete one aggregate."""

    @abstractmethod
    def delete_bulk(self, ids: Sequence) -> None:
        """Soft-delete every aggregate whose identifier is in ``ids``."""
