"""
Unit tests for the Sale aggregate repository (SQLite in memory).
"""

import uuid
from decimal import Decimal

import pytest
from unittest.mock import MagicMock
from sqlalchemy.exc import OperationalError

from linq.exceptions import InfrastructureError, NotFoundError
from linq.models import Sale, SaleDetail, DiscountType
from linq.repositories.base import Repository
from linq.repositories.sale_repository import SaleRepository
from linq.utils.paging import Paging


@pytest.fixture
def repo(session):
    return SaleRepository(session)


def test_repository_is_a_repository(repo):
    assert isinstance(repo, Repository)


class TestCountAndExists:

    def test_count_ignores_deleted(self, repo, make_sale):
        make_sale()
        make_sale()
        make_sale(deleted=True)
        assert repo.count_all() == 2

    def test_exists(self, repo, make_sale):
        live = make_sale()
        gone = make_sale(deleted=True)
        assert repo.is_exist(live) is True
        assert repo.is_exist(gone) is False
        assert repo.is_exist(uuid.uuid4()) is False

    def test_count_failure_raises(self):
        session = MagicMock()
        session.query.side_effect = OperationalError('SELECT', {}, Exception('gone'))
        with pytest.raises(InfrastructureError):
            SaleRepository(session).count_all()
        session.rollback.assert_called_once()

    def test_failure_message_omits_statement(self):
        session = MagicMock()
        session.query.side_effect = OperationalError(
            'SELECT count(sales.uid) FROM sales WHERE sales.deleted = ?', (0,), Exception('database is locked'))
        with pytest.raises(InfrastructureError) as exc:
            SaleRepository(session).count_all()
        assert exc.value.message == 'sales count failed'
        assert 'SQL:' not in str(exc.value)
        assert 'sales.deleted' not in str(exc.value)


class TestList:

    def test_default_page_is_25(self, repo, make_sale):
        for _ in range(30):
            make_sale()
        assert len(repo.get_all(Paging(length=0))) == 25
        assert len(repo.get_all(Paging(length=-3))) == 25

    def test_explicit_length(self, repo, make_sale):
        for _ in range(8):
            make_sale()
        assert len(repo.get_all(Paging(length=5))) == 5

    def test_excludes_deleted(self, repo, make_sale):
        live = make_sale()
        make_sale(deleted=True)
        assert [s.uid for s in repo.get_all(Paging())] == [live]

    def test_keyword_filter(self, repo, make_sale):
        match = make_sale(note='delivery to table 4')
        make_sale(note='walk-in')
        assert [s.uid for s in repo.get_all(Paging(keyword='TABLE'))] == [match]

    def test_keyword_wildcards_match_literally(self, repo, make_sale):
        percent = make_sale(note='50% off')
        underscore = make_sale(note='table_4')
        make_sale(note='walk-in')
        assert [s.uid for s in repo.get_all(Paging(keyword='%'))] == [percent]
        assert [s.uid for s in repo.get_all(Paging(keyword='_'))] == [underscore]
        assert repo.get_all(Paging(keyword='w_lk')) == []

    def test_order_by_total_desc(self, repo, make_sale):
        make_sale(total='5.00')
        make_sale(total='50.00')
        make_sale(total='20.00')
        sales = repo.get_all(Paging(order=2, order_dir='desc'))
        assert [s.total for s in sales] == [Decimal('50.00'), Decimal('20.00'), Decimal('5.00')]

    def test_offset(self, repo, make_sale):
        for total in ('1.00', '2.00', '3.00'):
            make_sale(total=total)
        sales = repo.get_all(Paging(start=1, length=1, order=2))
        assert [s.total for s in sales] == [Decimal('2.00')]

    def test_sales_composed_with_own_detail(self, repo, make_sale):
        a = make_sale(lines=2)
        b = make_sale(lines=1)
        by_uid = {s.uid: s for s in repo.get_all(Paging())}
        assert len(by_uid[a].detail) == 2
        assert len(by_uid[b].detail) == 1
        assert all(d.sale_uid == a for d in by_uid[a].detail)


class TestGet:

    def test_get_with_detail(self, repo, make_sale):
        uid = make_sale(lines=3)
        sale = repo.get(uid)
        assert sale.uid == uid
        assert len(sale.detail) == 3

    def test_get_missing(self, repo):
        with pytest.raises(NotFoundError):
            repo.get(uuid.uuid4())

    def test_get_deleted(self, repo, make_sale):
        uid = make_sale(deleted=True)
        with pytest.raises(NotFoundError):
            repo.get(uid)

    def test_detail_skips_deleted_lines(self, repo, make_sale, session):
        uid = make_sale(lines=2)
        line = session.query(SaleDetail).filter(SaleDetail.sale_uid == uid).first()
        line.deleted = True
        session.commit()
        assert len(repo.get_detail(uid)) == 1


class TestInsert:

    def test_insert_assigns_new_uid(self, repo):
        supplied = str(uuid.uuid4())
        sale = Sale(uid=supplied, total=Decimal('12.50'), total_payment=Decimal('20.00'), payment_type='cash')
        repo.insert(sale)

        assert sale.uid != supplied
        uuid.UUID(sale.uid)
        assert repo.is_exist(sale.uid)
        assert repo.is_exist(supplied) is False

    def test_insert_sets_created_and_defaults(self, repo):
        sale = repo.insert(Sale(total=Decimal('1.00')))
        stored = repo.get(sale.uid)
        assert stored.created is not None
        assert stored.deleted is False
        assert stored.discount_type == DiscountType.FIXED

    def test_insert_persists_detail(self, repo):
        sale = Sale(total=Decimal('30.00'), detail=[
            SaleDetail(product=str(uuid.uuid4()), quantity=Decimal('1'), price=Decimal('10.00'), subtotal=Decimal('10.00')),
            SaleDetail(product=str(uuid.uuid4()), quantity=Decimal('2'), price=Decimal('10.00'), subtotal=Decimal('20.00')),
        ])
        repo.insert(sale)
        stored = repo.get(sale.uid)
        assert [d.quantity for d in stored.detail] == [Decimal('1'), Decimal('2')]
        assert all(d.sale_uid == sale.uid for d in stored.detail)


class TestUpdate:

    def test_update_fields(self, repo, make_sale):
        uid = make_sale(note='before')
        sale = Sale.from_dict({**repo.get(uid).to_dict(), 'note': 'after', 'discount': '5', 'discount_type': 'percentage'})
        updated = repo.update(sale)

        assert updated.note == 'after'
        assert updated.discount == Decimal('5')
        assert updated.discount_type == DiscountType.PERCENTAGE
        assert updated.updated is not None

    def test_update_keeps_detail(self, repo, make_sale):
        uid = make_sale(lines=2)
        sale = Sale.from_dict({**repo.get(uid).to_dict(), 'detail': []})
        assert len(repo.update(sale).detail) == 2

    def test_update_missing(self, repo):
        with pytest.raises(NotFoundError):
            repo.update(Sale(uid=str(uuid.uuid4()), total=Decimal('1'), total_payment=Decimal('1'),
                             discount=Decimal('0'), discount_type=DiscountType.FIXED))


class TestDelete:

    def test_delete_is_soft(self, repo, make_sale, session):
        uid = make_sale()
        repo.delete(Sale.stub(uid))

        assert repo.is_exist(uid) is False
        row = session.query(Sale).filter(Sale.uid == uid).one()
        assert row.deleted is True

    def test_delete_bulk(self, repo, make_sale, session):
        a, b, keep = make_sale(), make_sale(), make_sale()
        repo.delete_bulk([uuid.UUID(a), b])

        assert repo.is_exist(a) is False
        assert repo.is_exist(b) is False
        assert repo.is_exist(keep) is True
        assert [s.uid for s in repo.get_all(Paging())] == [keep]
        for uid in (a, b):
            with pytest.raises(NotFoundError):
                repo.get(uid)
        # Rows are retained
        assert session.query(Sale).filter(Sale.uid.in_([a, b])).count() == 2

    def test_delete_bulk_empty(self, repo, make_sale):
        make_sale()
        repo.delete_bulk([])
        assert repo.count_all() == 1
