"""
RigShop - Cart Unit Tests
=========================

Слияние позиций, price-at-add, удаление по нулевому количеству,
владение позициями, итоги и математика оформления.

Запуск: pytest backend/tests/test_cart.py -v
"""

import uuid

import pytest
from pymongo.errors import DuplicateKeyError

import rigshop.cart as cart_module
from rigshop.cart import (
    add_to_cart, update_quantity, remove_from_cart, clear_cart,
    get_cart_totals, get_cart_items, get_cart_summary,
    calculate_tax, calculate_shipping, calculate_order_totals,
)
from rigshop.database import ensure_indexes
from rigshop.errors import CartItemNotFound, Unauthenticated
from rigshop.models import ItemRef


# ============================================================================
# TEST: Add to cart
# ============================================================================

class TestAddToCart:

    def test_new_line_keeps_price_snapshot(self, db):
        result = add_to_cart(db, 'user-1', ItemRef.product('gpu-1'), 1, 549.0)
        assert result['action'] == 'created'
        item = result['cart_item']
        assert item['item_type'] == 'product'
        assert item['item_id'] == 'gpu-1'
        assert item['quantity'] == 1
        assert item['price_at_time'] == 549.0
        assert str(uuid.UUID(item['id'])) == item['id']

    def test_duplicate_add_merges_and_first_price_wins(self, db):
        first = add_to_cart(db, 'user-1', ItemRef.product('gpu-1'), 1, 549.0)
        second = add_to_cart(db, 'user-1', ItemRef.product('gpu-1'), 2, 499.0)

        assert second['action'] == 'updated'
        assert second['cart_item']['id'] == first['cart_item']['id']
        items = list(db.cart_items.find({'user_id': 'user-1'}))
        assert len(items) == 1
        assert items[0]['quantity'] == 3
        assert items[0]['price_at_time'] == 549.0

    def test_same_id_different_kind_is_separate_line(self, db):
        add_to_cart(db, 'user-1', ItemRef.product('x-1'), 1, 10.0)
        add_to_cart(db, 'user-1', ItemRef.prebuilt('x-1'), 1, 1000.0)
        assert db.cart_items.count_documents({'user_id': 'user-1'}) == 2

    def test_lines_are_per_user(self, db):
        add_to_cart(db, 'user-1', ItemRef.product('gpu-1'), 1, 549.0)
        add_to_cart(db, 'user-2', ItemRef.product('gpu-1'), 1, 549.0)
        assert db.cart_items.count_documents({}) == 2

    def test_requires_user(self, db):
        with pytest.raises(Unauthenticated):
            add_to_cart(db, None, ItemRef.product('gpu-1'), 1, 549.0)

    def test_non_positive_quantity_rejected(self, db):
        with pytest.raises(ValueError):
            add_to_cart(db, 'user-1', ItemRef.product('gpu-1'), 0, 549.0)


class TestItemRef:

    def test_exactly_one_reference(self):
        ref = ItemRef.from_fields(prebuilt_id='pb-1')
        assert ref.kind.value == 'prebuilt'
        assert ref.id == 'pb-1'

    @pytest.mark.parametrize('fields', [
        {},
        {'product_id': 'p-1', 'prebuilt_id': 'pb-1'},
        {'product_id': 'p-1', 'prebuilt_id': 'pb-1', 'custom_build_id': 'cb-1'},
    ])
    def test_none_or_several_references_rejected(self, fields):
        with pytest.raises(ValueError):
            ItemRef.from_fields(**fields)


class TestConcurrentAdd:

    def test_line_key_is_unique(self, db):
        ensure_indexes(db)
        add_to_cart(db, 'user-1', ItemRef.product('gpu-1'), 1, 500.0)
        with pytest.raises(DuplicateKeyError):
            db.cart_items.insert_one({
                'id': 'other', 'user_id': 'user-1', 'item_type': 'product', 'item_id': 'gpu-1',
                'quantity': 1, 'price_at_time': 1.0,
            })

    def test_lost_insert_race_merges_into_winner(self, db, monkeypatch):
        ensure_indexes(db)
        real_upsert = cart_module._upsert_line
        calls = []

        def racing_upsert(db_, match, quantity, price):
            calls.append(quantity)
            if len(calls) == 1:
                # другой запрос успел вставить ту же позицию
                real_upsert(db_, match, 1, 500.0)
                raise DuplicateKeyError("E11000 duplicate key error")
            return real_upsert(db_, match, quantity, price)

        monkeypatch.setattr(cart_module, '_upsert_line', racing_upsert)
        result = add_to_cart(db, 'user-1', ItemRef.product('gpu-1'), 2, 450.0)

        assert result['action'] == 'updated'
        lines = list(db.cart_items.find({'user_id': 'user-1'}))
        assert len(lines) == 1
        assert lines[0]['quantity'] == 3
        assert lines[0]['price_at_time'] == 500.0

    def test_repeated_adds_with_index_keep_one_line(self, db):
        ensure_indexes(db)
        for _ in range(5):
            add_to_cart(db, 'user-1', ItemRef.product('gpu-1'), 1, 500.0)
        assert db.cart_items.count_documents({'user_id': 'user-1'}) == 1
        assert db.cart_items.find_one({'user_id': 'user-1'})['quantity'] == 5


# ============================================================================
# TEST: Quantity / removal
# ============================================================================

class TestUpdateQuantity:

    def test_sets_quantity(self, db):
        item = add_to_cart(db, 'user-1', ItemRef.product('ram-1'), 1, 109.0)['cart_item']
        update_quantity(db, 'user-1', item['id'], 4)
        assert db.cart_items.find_one({'id': item['id']})['quantity'] == 4

    @pytest.mark.parametrize('quantity', [0, -2])
    def test_zero_or_negative_deletes(self, db, quantity):
        item = add_to_cart(db, 'user-1', ItemRef.product('ram-1'), 1, 109.0)['cart_item']
        result = update_quantity(db, 'user-1', item['id'], quantity)
        assert result['action'] == 'deleted'
        assert db.cart_items.find_one({'id': item['id']}) is None
        assert get_cart_totals(db, 'user-1') == {'subtotal': 0, 'item_count': 0}

    def test_foreign_item_not_found(self, db):
        item = add_to_cart(db, 'user-1', ItemRef.product('ram-1'), 1, 109.0)['cart_item']
        with pytest.raises(CartItemNotFound):
            update_quantity(db, 'user-2', item['id'], 5)
        assert db.cart_items.find_one({'id': item['id']})['quantity'] == 1

    def test_missing_item_not_found(self, db):
        with pytest.raises(CartItemNotFound):
            update_quantity(db, 'user-1', 'nope', 1)


class TestRemoveAndClear:

    def test_remove_own_item(self, db):
        item = add_to_cart(db, 'user-1', ItemRef.product('ssd-1'), 1, 89.0)['cart_item']
        remove_from_cart(db, 'user-1', item['id'])
        assert db.cart_items.count_documents({}) == 0

    def test_remove_foreign_item_leaves_store_unchanged(self, db):
        item = add_to_cart(db, 'user-1', ItemRef.product('ssd-1'), 2, 89.0)['cart_item']
        before = list(db.cart_items.find({}, {'_id': 0}))
        with pytest.raises(CartItemNotFound):
            remove_from_cart(db, 'user-2', item['id'])
        assert list(db.cart_items.find({}, {'_id': 0})) == before

    def test_clear_only_own_items(self, db):
        add_to_cart(db, 'user-1', ItemRef.product('a'), 1, 1.0)
        add_to_cart(db, 'user-1', ItemRef.product('b'), 1, 1.0)
        add_to_cart(db, 'user-2', ItemRef.product('a'), 1, 1.0)
        result = clear_cart(db, 'user-1')
        assert result['deleted_count'] == 2
        assert db.cart_items.count_documents({'user_id': 'user-2'}) == 1

    def test_clear_empty_cart_is_noop(self, db):
        result = clear_cart(db, 'user-1')
        assert result['deleted_count'] == 0
        assert get_cart_totals(db, 'user-1') == {'subtotal': 0, 'item_count': 0}

    def test_writes_require_user(self, db):
        with pytest.raises(Unauthenticated):
            clear_cart(db, None)
        with pytest.raises(Unauthenticated):
            remove_from_cart(db, None, 'x')
        with pytest.raises(Unauthenticated):
            update_quantity(db, None, 'x', 1)


# ============================================================================
# TEST: Totals
# ============================================================================

class TestTotals:

    def test_two_lines_scenario(self, db):
        add_to_cart(db, 'user-1', ItemRef.product('gpu'), 1, 500.0)
        add_to_cart(db, 'user-1', ItemRef.product('ram'), 2, 300.0)

        totals = get_cart_totals(db, 'user-1')
        assert totals == {'subtotal': 1100.0, 'item_count': 3}

        order = calculate_order_totals(totals['subtotal'])
        assert order['tax'] == pytest.approx(88.00)
        assert order['shipping'] == 0
        assert order['total'] == pytest.approx(1188.00)

    def test_single_cheap_line_scenario(self, db):
        add_to_cart(db, 'user-1', ItemRef.product('fan'), 1, 40.0)

        totals = get_cart_totals(db, 'user-1')
        assert totals == {'subtotal': 40.0, 'item_count': 1}

        order = calculate_order_totals(totals['subtotal'])
        assert order['tax'] == pytest.approx(3.20)
        assert order['shipping'] == 50
        assert order['total'] == pytest.approx(93.20)

    def test_anonymous_totals_are_zero(self, db):
        assert get_cart_totals(db, None) == {'subtotal': 0, 'item_count': 0}


class TestCheckoutMath:

    @pytest.mark.parametrize('subtotal,shipping', [
        (0, 50),
        (999.99, 50),
        (1000, 50),
        (1000.01, 0),
        (2500, 0),
    ])
    def test_free_shipping_strictly_above_threshold(self, subtotal, shipping):
        assert calculate_shipping(subtotal) == shipping

    def test_tax_rate(self):
        assert calculate_tax(250) == pytest.approx(20.0)
        assert calculate_tax(0) == 0


# ============================================================================
# TEST: Items with details
# ============================================================================

class TestCartItemsWithDetails:

    def test_join_each_reference_kind(self, db, make_product):
        gpu = make_product('RTX 4070', 549.0)
        db.prebuilt_configs.insert_one({'id': 'pb-1', 'name': 'Forge Mid'})
        db.custom_builds.insert_one({'id': 'cb-1', 'name': 'My rig'})

        add_to_cart(db, 'user-1', ItemRef.product(gpu['id']), 1, 549.0)
        add_to_cart(db, 'user-1', ItemRef.prebuilt('pb-1'), 1, 1499.0)
        add_to_cart(db, 'user-1', ItemRef.custom_build('cb-1'), 1, 1633.0)

        details = {i['item_type']: i['item_details'] for i in get_cart_items(db, 'user-1')}
        assert details['product']['name'] == 'RTX 4070'
        assert details['prebuilt']['name'] == 'Forge Mid'
        assert details['custom_build']['name'] == 'My rig'
        assert all('_id' not in d for d in details.values())

    def test_dangling_reference_yields_none(self, db, make_product):
        gpu = make_product('RTX 4070', 549.0)
        add_to_cart(db, 'user-1', ItemRef.product(gpu['id']), 1, 549.0)
        add_to_cart(db, 'user-1', ItemRef.product('deleted-product'), 1, 10.0)

        items = {i['item_id']: i for i in get_cart_items(db, 'user-1')}
        assert items[gpu['id']]['item_details']['name'] == 'RTX 4070'
        assert items['deleted-product']['item_details'] is None

    def test_anonymous_cart_is_empty(self, db):
        assert get_cart_items(db, None) == []

    def test_summary_includes_checkout_totals(self, db):
        add_to_cart(db, 'user-1', ItemRef.product('fan'), 1, 40.0)
        summary = get_cart_summary(db, 'user-1')
        assert summary['item_count'] == 1
        assert summary['subtotal'] == 40.0
        assert summary['total'] == pytest.approx(93.20)
        assert len(summary['items']) == 1

    def test_summary_totals_come_from_single_read(self, db, monkeypatch):
        add_to_cart(db, 'user-1', ItemRef.product('gpu'), 1, 500.0)
        add_to_cart(db, 'user-1', ItemRef.product('ram'), 2, 300.0)

        reads = []
        real_read = cart_module.get_user_cart_items

        def counting_read(db_, user_id):
            reads.append(user_id)
            return real_read(db_, user_id)

        monkeypatch.setattr(cart_module, 'get_user_cart_items', counting_read)
        summary = get_cart_summary(db, 'user-1')

        assert reads == ['user-1']
        assert summary['subtotal'] == 1100.0
        assert summary['item_count'] == 3
        assert summary['total'] == pytest.approx(1188.0)
