"""Models package - exports all SQLAlchemy models."""
from linq.models.sale import Sale, DiscountType
from linq.models.sale_detail import SaleDetail

__all__ = ['Sale', 'DiscountType', 'SaleDetail']
