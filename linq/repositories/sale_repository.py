"""
Sale repository - Sale aggregates (a Sale plus its SaleDetail lines).

Every read composes the Sale with its non-deleted detail lines. Deletes are
soft: the ``deleted`` flag is set and the row stays in the table.
"""
import logging
import uuid
from typing import List, Sequence

from sqlalchemy import func, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from linq.database import get_session
from linq.exceptions import InfrastructureError, NotFoundError
from linq.models import Sale, SaleDetail
from linq.repositories.base import Repository
from linq.utils.paging import Paging
from linq.utils.serialization import parse_uuid

logger = logging.getLogger(__name__)

# Paging.order -> column
ORDER_COLUMNS = {
    1: Sale.created,
    2: Sale.total,
    3: Sale.customer,
}

MUTABLE_FIELDS = (
    'customer', 'user', 'discount', 'discount_type', 'total',
    'total_payment', 'payment_type', 'note',
)


def escape_like(keyword: str) -> str:
    """Make LIKE wildcards in a user keyword match literally."""
    return keyword.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SaleRepository(Repository):
    """SQLAlchemy implementation of the Sale aggregate repository."""

    def __init__(self, session: Session = None):
        self.session = session or get_session()

    def _fail(self, operation: str, error: SQLAlchemyError):
        self.session.rollback()
        logger.error(f"[DB] ✗ sales.{operation} failed: {error}")
        # Statement text and bound parameters stay in the log
        return InfrastructureError(f"sales {operation} failed")

    def _live(self):
        return self.session.query(Sale).filter(Sale.deleted == False)  # noqa: E712

    def count_all(self) -> int:
        try:
            return self.session.query(func.count(Sale.uid)).filter(Sale.deleted == False).scalar()  # noqa: E712
        except SQLAlchemyError as e:
            raise self._fail('count', e) from e

    def is_exist(self, id) -> bool:
        uid = str(parse_uuid(id, 'uid'))
        try:
            return bool(self.session.query(self._live().filter(Sale.uid == uid).exists()).scalar())
        except SQLAlchemyError as e:
            raise self._fail('exists', e) from e

    def get_all(self, paging: Paging) -> List[Sale]:
        """
        One page of sales, each with its detail lines.

        All-or-nothing: a failure on any row or detail fetch raises and no
        partial page is returned.
        """
        query = self._live()

        if paging.keyword:
            like = f"%{escape_like(paging.keyword)}%"
            query = query.filter(or_(
                Sale.note.ilike(like, escape="\\"),
                Sale.payment_type.ilike(like, escape="\\"),
                Sale.customer.ilike(like, escape="\\"),
            ))

        if paging.order > 0:
            column = ORDER_COLUMNS.get(paging.order, Sale.created)
            query = query.order_by(column.desc() if paging.descending else column.asc())

        try:
            sales = query.offset(paging.offset).limit(paging.limit).all()
            for sale in sales:
                sale.detail = self.get_detail(sale.uid)
        except SQLAlchemyError as e:
            raise self._fail('list', e) from e

        return sales

    def get(self, id) -> Sale:
        uid = str(parse_uuid(id, 'uid'))
        try:
            sale = self._live().filter(Sale.uid == uid).first()
            if sale is None:
                raise NotFoundError(f"sale {uid} not found")
            sale.detail = self.get_detail(uid)
        except SQLAlchemyError as e:
            raise self._fail('get', e) from e
        return sale

    def get_detail(self, sale_uid) -> List[SaleDetail]:
        """Non-deleted detail lines of one sale, in insertion order."""
        return self.session.query(SaleDetail).filter(
            SaleDetail.sale_uid == str(sale_uid),
            SaleDetail.deleted == False  # noqa: E712
        ).order_by(SaleDetail.id).all()

    def insert(self, model: Sale) -> Sale:
        """
        Persist a new sale with a fresh identifier.

        Any identifier set by the caller is replaced. Detail lines attached
        to ``model.detail`` are stored with it.
        """
        model.uid = str(uuid.uuid4())
        details = list(model.detail)
        try:
            self.session.add(model)
            self.session.flush()
            for detail in details:
                detail.sale_uid = model.uid
                self.session.add(detail)
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail('insert', e) from e

        logger.info(f"[DB] Sale {model.uid} inserted ({len(details)} lines)")
        model.detail = details
        return model

    def update(self, model: Sale) -> Sale:
        """Write every mutable field of an existing sale. Detail lines are left untouched."""
        uid = str(parse_uuid(model.uid, 'uid'))
        values = {field: getattr(model, field) for field in MUTABLE_FIELDS}
        values['updated'] = func.now()
        try:
            result = self.session.execute(
                update(Sale)
                .where(Sale.uid == uid, Sale.deleted == False)  # noqa: E712
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail('update', e) from e

        if result.rowcount == 0:
            raise NotFoundError(f"sale {uid} not found")
        return self.get(uid)

    def delete(self, model: Sale) -> None:
        uid = str(parse_uuid(model.uid, 'uid'))
        try:
            self.session.execute(
                update(Sale)
                .where(Sale.uid == uid)
                .values(deleted=True)
                .execution_options(synchronize_session=False)
            )
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail('delete', e) from e
        logger.info(f"[DB] Sale {uid} soft-deleted")

    def delete_bulk(self, ids: Sequence) -> None:
        """Soft-delete all given sales in one statement."""
        uids = [str(parse_uuid(i, 'uid')) for i in ids]
        if not uids:
            return
        try:
            self.session.execute(
                update(Sale)
                .where(Sale.uid.in_(uids))
                .values(deleted=True)
                .execution_options(synchronize_session=False)
            )
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail('delete_bulk', e) from e
        logger.info(f"[DB] {len(uids)} sales soft-deleted")
