"""
Общие фикстуры: in-memory Mongo (mongomock) и фабрики документов каталога.
"""

import uuid

import jwt
import mongomock
import pytest

from rigshop.config import get_jwt_secret, get_jwt_algorithm


@pytest.fixture
def db():
    client = mongomock.MongoClient()
    yield client['rigshop_test']
    client.close()


@pytest.fixture
def make_product(db):
    """Вставляет товар и возвращает документ без _id"""
    def _make(name='Part', price=100.0, category_id='cat-x', type='component', featured=False, **specs):
        doc = {
            'id': str(uuid.uuid4()),
            'name': name,
            'slug': name.lower().replace(' ', '-'),
            'category_id': category_id,
            'type': type,
            'price': price,
            'specifications': specs,
            'in_stock': True,
            'stock_count': 10,
            'featured': featured,
        }
        db.products.insert_one(dict(doc))
        return doc
    return _make


@pytest.fixture
def compatible_build(make_product):
    """Полная совместимая сборка (без cooling)"""
    return {
        'cpu': make_product('Ryzen 7 7700', 329.0, socket='AM5', power=65),
        'gpu': make_product('RTX 4070 Super', 599.0, power=220),
        'motherboard': make_product('B650 Tomahawk', 219.0, socket='AM5'),
        'ram': make_product('DDR5 32GB', 109.0),
        'storage': make_product('NVMe 2TB', 149.0),
        'psu': make_product('850W Gold', 129.0, power=850),
        'case': make_product('Midi Tower', 99.0),
        'cooling': None,
    }


def make_token(user_id: str) -> str:
    return jwt.encode({'sub': user_id}, get_jwt_secret(), algorithm=get_jwt_algorithm())


@pytest.fixture
def auth_headers():
    def _headers(user_id: str = 'user-1'):
        return {'Authorization': f'Bearer {make_token(user_id)}'}
    return _headers
