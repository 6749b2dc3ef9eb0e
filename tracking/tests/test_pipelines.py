from datetime import datetime

import pytest
from bson import ObjectId

from lims_tracking.exceptions import NotFound
from tracking import pipelines
from tracking.lifecycle import DISCARDED, IN_PREPARATION, RECEIVED, REPORTED


@pytest.fixture
def sample_j2024_007(mongo_db, make_job, make_lot):
    """Job J-2024-007: lot 001 is being prepared with three specimens, lot 002 is untouched"""
    client_id = mongo_db.clients.insert_one({'client_name': 'GRIPCO'}).inserted_id
    method_id = mongo_db.test_methods.insert_one({'test_name': 'Charpy impact'}).inserted_id
    job = make_job('J-2024-007', client_id, project_name='Pipeline')

    lot_2 = make_lot(job['_id'], 'J-2024-007-002', created_at=datetime(2024, 3, 3))
    lot_1 = make_lot('J-2024-007', 'J-2024-007-001', test_method_oids=[method_id])
    specimen_ids = mongo_db.specimens.insert_many(
        [{'specimen_id': f'SP-{n}'} for n in range(1, 4)]
    ).inserted_ids
    mongo_db.sample_preparations.insert_one({
        'request_no': 'REQ-001',
        'created_at': datetime(2024, 3, 5),
        'request_items': [{'request_id': lot_1['_id'], 'specimen_oids': specimen_ids}],
    })
    return {'job': job, 'lot_1': lot_1, 'lot_2': lot_2, 'method_id': method_id}


def test_complete_info_scenario(mongo_db, sample_j2024_007):
    info = pipelines.job_complete_info(mongo_db, 'J-2024-007')

    assert info['job']['job_id'] == 'J-2024-007'
    assert info['job']['client_name'] == 'GRIPCO'
    assert info['job']['sample_count'] == 2
    assert info['job']['lifecycle']['status'] == IN_PREPARATION

    lots = info['lots']
    assert [lot['item_no'] for lot in lots] == ['J-2024-007-001', 'J-2024-007-002']
    assert lots[0]['status'] == IN_PREPARATION
    assert lots[0]['specimens_count'] == 3
    assert lots[0]['test_method_names'] == ['Charpy impact']
    assert lots[1]['status'] == RECEIVED
    assert lots[1]['specimens_count'] == 0
    assert lots[1]['test_method_names'] == []


def test_complete_info_by_object_id(mongo_db, sample_j2024_007):
    info = pipelines.job_complete_info(mongo_db, str(sample_j2024_007['job']['_id']))
    assert info['job']['job_id'] == 'J-2024-007'


def test_complete_info_unknown_job(mongo_db):
    with pytest.raises(NotFound):
        pipelines.job_complete_info(mongo_db, 'J-404')
    with pytest.raises(NotFound):
        pipelines.job_complete_info(mongo_db, str(ObjectId()))


def test_soft_deleted_children_do_not_count(mongo_db, sample_j2024_007):
    mongo_db.sample_preparations.update_many({}, {'$set': {'is_active': False}})
    mongo_db.discarded_materials.insert_one({'sampleId': 'J-2024-007', 'is_active': False})

    info = pipelines.job_complete_info(mongo_db, 'J-2024-007')

    assert info['job']['lifecycle']['status'] == RECEIVED
    assert info['lots'][0]['specimens_count'] == 0


def test_list_jobs_counts_lots_in_every_shape(mongo_db, sample_j2024_007, make_job, make_lot):
    make_lot(str(sample_j2024_007['job']['_id']), 'J-2024-007-003')
    make_lot(sample_j2024_007['job']['_id'], 'J-2024-007-004', is_active=False)
    make_job('J-2024-008', created_at=datetime(2024, 3, 9))

    page = pipelines.list_jobs(mongo_db, 1, 20)

    assert page['count'] == 2
    assert [row['job_id'] for row in page['results']] == ['J-2024-008', 'J-2024-007']
    assert page['results'][1]['sample_count'] == 3
    assert page['results'][1]['client_name'] == 'GRIPCO'
    assert page['results'][0]['sample_count'] == 0


def test_tracking_rows_and_status_filter(mongo_db, sample_j2024_007, make_job, make_lot):
    reported = make_job('J-R', created_at=datetime(2024, 3, 2))
    reported_lot = make_lot(reported['_id'], 'J-R-001')
    preparation_id = mongo_db.sample_preparations.insert_one({
        'request_no': 'REQ-R',
        'request_items': [{'request_id': str(reported_lot['_id']), 'specimen_oids': []}],
    }).inserted_id
    mongo_db.complete_certificates.insert_one({
        'certificate_id': 'CERT-1', 'request_id': preparation_id, 'issue_date': '2024-04-02',
    })

    discarded = make_job('J-D', created_at=datetime(2024, 3, 3))
    make_lot(discarded['_id'], 'J-D-001')
    mongo_db.discarded_materials.insert_one({'sampleId': discarded['_id'], 'discard_date': datetime(2024, 5, 1)})

    rows = {row['job_id']: row for row in pipelines.list_tracking_rows(mongo_db, 1, 20)['results']}
    assert rows['J-2024-007']['latest_status'] == IN_PREPARATION
    assert rows['J-2024-007']['items_count'] == 2
    assert rows['J-2024-007']['specimens_count'] == 3
    assert rows['J-R']['latest_status'] == REPORTED
    assert rows['J-R']['report_issue_date'] == '2024-04-02T00:00:00'
    assert rows['J-D']['latest_status'] == DISCARDED
    assert rows['J-D']['discard_date'] == '2024-05-01T00:00:00'

    page = pipelines.list_tracking_rows(mongo_db, 1, 20, status=REPORTED)
    assert page['count'] == 1
    assert [row['job_id'] for row in page['results']] == ['J-R']
    assert page['next'] is None


def test_search_preparations_filters_before_paginating(mongo_db, sample_j2024_007, make_job, make_lot):
    other = make_job('J-OTHER', project_name='Refinery')
    other_lot = make_lot(other['_id'], 'J-OTHER-001')
    for n in range(25):
        mongo_db.sample_preparations.insert_one({
            'request_no': f'REQ-X{n:02d}',
            'created_at': datetime(2024, 2, 1),
            'request_items': [{'request_id': other_lot['_id'], 'specimen_oids': []}],
        })

    page = pipelines.search_preparations(mongo_db, 1, 20, client_name='gripco')
    assert page['count'] == 1
    assert page['next'] is None
    row = page['results'][0]
    assert row['request_no'] == 'REQ-001'
    assert row['job_id'] == 'J-2024-007'
    assert row['project_name'] == 'Pipeline'
    assert row['client_name'] == 'GRIPCO'
    assert row['no_of_request_items'] == 1
    assert row['specimen_ids'] == ['SP-1', 'SP-2', 'SP-3']
    assert row['created_at'] == '2024-03-05T00:00:00'
    assert 'search_texts' not in row

    page = pipelines.search_preparations(mongo_db, 2, 20, q='refinery')
    assert page['count'] == 25
    assert len(page['results']) == 5
    assert page['previous'] == 1
    assert page['next'] is None

    assert pipelines.search_preparations(mongo_db, 1, 20, specimen_id='sp-2')['count'] == 1
    assert pipelines.search_preparations(mongo_db, 1, 20, date_from='2024-03-01', date_to='2024-03-05')['count'] == 1
    assert pipelines.search_preparations(mongo_db, 1, 20, date_to='2024-02-01')['count'] == 25


def test_search_preparations_date_range_reads_string_and_datetime_dates(mongo_db, make_job, make_lot):
    job = make_job('J-1')
    lot = make_lot(job['_id'], 'J-1-001')
    mongo_db.sample_preparations.insert_many([
        {'request_no': 'REQ-1', 'created_at': '2024-03-05T10:00:00',
         'request_items': [{'request_id': lot['_id']}]},
        {'request_no': 'REQ-2', 'created_at': datetime(2024, 3, 5, 10),
         'request_items': [{'request_id': lot['_id']}]},
        {'request_no': 'REQ-3', 'created_at': '2024-04-01T00:00:00Z',
         'request_items': [{'request_id': lot['_id']}]},
        {'request_no': 'REQ-4', 'request_items': [{'request_id': lot['_id']}]},
        {'request_no': 'REQ-5', 'created_at': '2024-03-31T23:30:00Z',
         'request_items': [{'request_id': lot['_id']}]},
    ])

    page = pipelines.search_preparations(mongo_db, 1, 20, date_from='2024-03-01', date_to='2024-03-31')

    assert sorted(row['request_no'] for row in page['results']) == ['REQ-1', 'REQ-2', 'REQ-5']
    assert page['count'] == 3
    assert pipelines.search_preparations(mongo_db, 1, 20, date_from='2024-03-06')['count'] == 2
    assert pipelines.search_preparations(mongo_db, 1, 20)['count'] == 5


def test_list_certificates_joins_request_number(mongo_db):
    preparation_id = mongo_db.sample_preparations.insert_one({'request_no': 'REQ-7'}).inserted_id
    legacy_id = mongo_db.sample_preparations.insert_one({'request_no': 'REQ-8'}).inserted_id
    mongo_db.complete_certificates.insert_many([
        {'certificate_id': 'CERT-1', 'request_id': preparation_id, 'created_at': datetime(2024, 4, 1)},
        {'certificate_id': 'CERT-2', 'preparationId': str(ObjectId()), 'created_at': datetime(2024, 4, 2)},
        {'certificate_id': 'CERT-3', 'request_id': preparation_id, 'is_active': False},
        {'certificate_id': 'CERT-4', 'preparationId': str(legacy_id), 'created_at': datetime(2024, 4, 3)},
    ])

    page = pipelines.list_certificates(mongo_db, 1, 10)

    assert page['count'] == 3
    rows = {row['certificate_id']: row for row in page['results']}
    assert rows['CERT-1']['request_no'] == 'REQ-7'
    assert rows['CERT-2']['request_no'] == ''
    assert rows['CERT-4']['request_no'] == 'REQ-8'
    assert rows['CERT-4']['request_id'] == str(legacy_id)
    assert rows['CERT-1']['request_id'] == str(preparation_id)
