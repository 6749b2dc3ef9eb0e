import json


def _post(client, payload):
    return client.post('/api/specimens/', data=json.dumps(payload), content_type='application/json')


def test_create_and_list(mongo_db, api_client):
    response = _post(api_client, {'specimen_id': ' SP-001 '})
    assert response.status_code == 201
    assert response.json()['data']['specimen_id'] == 'SP-001'

    _post(api_client, {'specimen_id': 'SP-002'})

    body = api_client.get('/api/specimens/', {'q': '001'}).json()
    assert body['count'] == 1
    assert body['results'][0]['specimen_id'] == 'SP-001'


def test_duplicate_specimen_id_is_rejected(mongo_db, api_client):
    assert _post(api_client, {'specimen_id': 'SP-001'}).status_code == 201

    response = _post(api_client, {'specimen_id': 'SP-001'})

    assert response.status_code == 400
    assert 'already exists' in response.json()['message']
    assert mongo_db.specimens.count_documents({'specimen_id': 'SP-001'}) == 1


def test_missing_specimen_id(mongo_db, api_client):
    assert _post(api_client, {}).status_code == 400
    assert _post(api_client, {'specimen_id': '  '}).status_code == 400
