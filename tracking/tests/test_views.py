from pymongo.errors import AutoReconnect

from tracking import views


def test_tracking_rows(mongo_db, api_client, make_job, make_lot):
    job = make_job('J-1')
    make_lot(job['_id'], 'J-1-001')
    mongo_db.discarded_materials.insert_one({'sampleId': 'J-1'})

    body = api_client.get('/api/tracking/').json()

    assert body['count'] == 1
    row = body['results'][0]
    assert row['job_id'] == 'J-1'
    assert row['latest_status'] == 'discarded'
    assert row['items_count'] == 1
    assert row['received_date'] == '2024-03-01T09:00:00'


def test_status_filter(mongo_db, api_client, make_job):
    make_job('J-1')
    assert api_client.get('/api/tracking/', {'status': 'received'}).json()['count'] == 1
    assert api_client.get('/api/tracking/', {'status': 'reported'}).json()['count'] == 0


def test_unknown_status(mongo_db, api_client):
    response = api_client.get('/api/tracking/', {'status': 'shipped'})
    assert response.status_code == 400
    assert 'shipped' in response.json()['message']


def test_storage_failure(mongo_db, api_client, monkeypatch):
    def unavailable(*args, **kwargs):
        raise AutoReconnect('connection reset')

    monkeypatch.setattr(views.pipelines, 'list_tracking_rows', unavailable)
    response = api_client.get('/api/tracking/')

    assert response.status_code == 500
    assert response.json()['message'] == 'Storage unavailable'
