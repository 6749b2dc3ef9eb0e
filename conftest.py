from datetime import datetime

import mongomock
import pytest
from django.test import Client
from mongoengine import connect, connection, disconnect

from authentication.jwt_utils import generate_access_token
from authentication.models import User


@pytest.fixture
def mongo_db():
    """
    In-memory MongoDB behind the default mongoengine alias.
    Views and pipelines read through connection.get_db(), so they see it too.
    """
    disconnect()
    connect('lims_test', host='mongodb://localhost', mongo_client_class=mongomock.MongoClient)
    db = connection.get_db()
    yield db
    connection.get_connection().drop_database('lims_test')
    disconnect()


@pytest.fixture
def user(mongo_db):
    user = User(
        username='technician',
        email='technician@lab.example',
        first_name='Lab',
        last_name='Technician',
        role='lab_technician',
    )
    user.set_password('s3cret-pass')
    user.save()
    return user


@pytest.fixture
def api_client(user):
    return Client(HTTP_AUTHORIZATION=f'Bearer {generate_access_token(user)}')


@pytest.fixture
def make_job(mongo_db):
    """Insert a raw job document and return it"""
    def _make_job(job_id, client_id=None, **fields):
        doc = {
            'job_id': job_id,
            'client_id': client_id,
            'project_name': fields.pop('project_name', f'Project {job_id}'),
            'end_user': fields.pop('end_user', ''),
            'received_by': fields.pop('received_by', ''),
            'receive_date': fields.pop('receive_date', datetime(2024, 3, 1, 9, 0)),
            'created_at': fields.pop('created_at', datetime(2024, 3, 1, 9, 0)),
        }
        doc.update(fields)
        doc['_id'] = mongo_db.jobs.insert_one(doc).inserted_id
        return doc
    return _make_job


@pytest.fixture
def make_lot(mongo_db):
    """Insert a raw sample lot document; job_ref is stored exactly as given"""
    def _make_lot(job_ref, item_no, **fields):
        doc = {
            'job_id': job_ref,
            'item_no': item_no,
            'description': fields.pop('description', f'Lot {item_no}'),
            'test_method_oids': fields.pop('test_method_oids', []),
            'created_at': fields.pop('created_at', datetime(2024, 3, 2, 9, 0)),
        }
        doc.update(fields)
        doc['_id'] = mongo_db.sample_lots.insert_one(doc).inserted_id
        return doc
    return _make_lot
