"""Sale Detail model."""
from decimal import Decimal
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, Boolean, ForeignKey
from linq.database import Base
from linq.utils.serialization import format_decimal, parse_decimal, parse_uuid


class SaleDetail(Base):
    """Sale Detail (one line item of a sale)."""

    __tablename__ = 'sale_details'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    # The physical column is ``uid``: the owning sale's identifier
    sale_uid = Column('uid', String(36), ForeignKey('sales.uid'), nullable=False, index=True)
    product = Column(String(36), nullable=False)
    quantity = Column(Numeric(10, 2), nullable=False, default=1)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    deleted = Column(Boolean, nullable=False, default=False)

    @classmethod
    def from_dict(cls, data):
        quantity = parse_decimal(data.get('quantity'), 'quantity')
        price = parse_decimal(data.get('price'), 'price')
        subtotal = parse_decimal(data.get('subtotal'), 'subtotal')
        if subtotal is None and quantity is not None and price is not None:
            subtotal = (quantity * price).quantize(Decimal('0.01'))
        fields = {
            'product': str(parse_uuid(data.get('product'), 'product')),
            'quantity': quantity,
            'price': price,
            'subtotal': subtotal,
        }
        return cls(**{k: v for k, v in fields.items() if v is not None})

    def to_dict(self):
        return {
            'id': self.id,
            'uid': self.sale_uid,
            'product': self.product,
            'quantity': format_decimal(self.quantity),
            'price': format_decimal(self.price),
            'subtotal': format_decimal(self.subtotal),
            'deleted': bool(self.deleted),
        }

    def __repr__(self):
        return f"<SaleDetail(id={self.id}, uid={self.sale_uid}, product={self.product})>"
