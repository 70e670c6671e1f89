"""Sale model."""
from sqlalchemy import Column, String, Numeric, DateTime, Enum, Boolean, Text
from sqlalchemy.orm import reconstructor
from sqlalchemy.sql import func
from linq.database import Base
from linq.exceptions import BadRequestError
from linq.utils.serialization import (
    format_decimal, format_datetime, parse_decimal, parse_uuid
)
import enum


class DiscountType(enum.Enum):
    """How a sale's discount amount is applied."""
    FIXED = 'fixed'
    PERCENTAGE = 'percentage'


class Sale(Base):
    """
    Sale (finalized or in-progress transaction).

    The owned SaleDetail lines are not mapped as a relationship: the
    repository composes ``detail`` on every read with the non-deleted
    lines only, so the collection never feeds back into a flush.
    """

    __tablename__ = 'sales'

    uid = Column(String(36), primary_key=True)
    customer = Column(String(36), nullable=True)
    user = Column(String(36), nullable=True)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    discount_type = Column(
        Enum(DiscountType, name='discount_type', values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=DiscountType.FIXED
    )
    total = Column(Numeric(12, 2), nullable=False, default=0)
    total_payment = Column(Numeric(12, 2), nullable=False, default=0)
    payment_type = Column(String(32), nullable=True)
    note = Column(Text, nullable=True)
    created = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated = Column(DateTime(timezone=True), nullable=True)
    deleted = Column(Boolean, nullable=False, default=False)

    def __init__(self, **kwargs):
        detail = kwargs.pop('detail', None)
        super().__init__(**kwargs)
        self.detail = list(detail or [])

    @reconstructor
    def _init_on_load(self):
        self.detail = []

    @classmethod
    def stub(cls, uid):
        """Sale carrying only its identifier (a cart placeholder)."""
        return cls(uid=str(uid))

    @classmethod
    def from_dict(cls, data):
        """Build a transient Sale from a decoded JSON object."""
        from linq.models.sale_detail import SaleDetail

        discount_type = data.get('discount_type')
        if discount_type:
            try:
                discount_type = DiscountType(discount_type)
            except ValueError:
                raise BadRequestError(f"invalid discount_type: {discount_type!r}")

        fields = {
            'uid': str(parse_uuid(data['uid'], 'uid')) if data.get('uid') else None,
            'customer': str(parse_uuid(data['customer'], 'customer')) if data.get('customer') else None,
            'user': str(parse_uuid(data['user'], 'user')) if data.get('user') else None,
            'discount': parse_decimal(data.get('discount'), 'discount'),
            'discount_type': discount_type or None,
            'total': parse_decimal(data.get('total'), 'total'),
            'total_payment': parse_decimal(data.get('total_payment'), 'total_payment'),
            'payment_type': data.get('payment_type'),
            'note': data.get('note'),
        }
        # Unset fields fall back to column defaults on insert
        sale = cls(**{k: v for k, v in fields.items() if v is not None})
        sale.detail = [SaleDetail.from_dict(d) for d in data.get('detail') or []]
        return sale

    def to_dict(self):
        return {
            'uid': self.uid,
            'customer': self.customer,
            'user': self.user,
            'discount': format_decimal(self.discount),
            'discount_type': self.discount_type.value if self.discount_type else None,
            'total': format_decimal(self.total),
            'total_payment': format_decimal(self.total_payment),
            'payment_type': self.payment_type,
            'note': self.note,
            'created': format_datetime(self.created),
            'updated': format_datetime(self.updated),
            'deleted': bool(self.deleted),
            'detail': [d.to_dict() for d in self.detail],
        }

    def __repr__(self):
        return f"<Sale(uid={self.uid}, total={self.total}, deleted={self.deleted})>"
