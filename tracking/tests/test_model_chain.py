"""
Documents written through the mongoengine models are read back by the raw
pipelines, from intake to disposal.
"""
from datetime import datetime

from certificates.models import Certificate
from clients.models import Client
from discards.models import DiscardedItem, DiscardedMaterial
from samplejobs.models import Job
from samplelots.allocator import create_sample_lot
from samplepreparations.models import RequestItem, SamplePreparation
from specimens.models import Specimen
from testmethods.models import TestMethod
from tracking import pipelines
from tracking.lifecycle import DISCARDED, IN_PREPARATION, RECEIVED, REPORTED


def _status(db, job_id):
    return pipelines.job_complete_info(db, job_id)['job']['lifecycle']['status']


def test_lifecycle_follows_the_model_chain(mongo_db):
    client = Client(client_name='GRIPCO', email='lab@gripco.example').save()
    method = TestMethod(test_name='Tensile Test ASTM A370').save()
    job = Job(
        job_id='MTL-2025-0042', client_id=client.id, project_name='Pipeline',
        receive_date=datetime(2025, 1, 10), received_by='Front desk',
    ).save()
    job_doc = mongo_db.jobs.find_one({'_id': job.id})

    lot = create_sample_lot(job_doc, {'description': 'Plate 10mm', 'test_method_oids': [method.id]})
    assert lot.item_no == 'MTL-2025-0042-001'
    assert _status(mongo_db, 'MTL-2025-0042') == RECEIVED

    specimens = [Specimen(specimen_id=f'SP-{n}').save() for n in range(2)]
    preparation = SamplePreparation(
        request_no='REQ-2025-0001',
        request_items=[RequestItem(
            request_id=lot.id,
            test_method_oid=method.id,
            specimen_oids=[specimen.id for specimen in specimens],
            request_by='Lab engineer',
        )],
    ).save()
    info = pipelines.job_complete_info(mongo_db, 'MTL-2025-0042')
    assert info['job']['lifecycle']['status'] == IN_PREPARATION
    assert info['lots'][0]['specimens_count'] == 2
    assert info['lots'][0]['test_method_names'] == ['Tensile Test ASTM A370']

    Certificate(certificate_id='CERT-2025-0195', request_id=preparation.id, issue_date='2025-02-01').save()
    assert _status(mongo_db, 'MTL-2025-0042') == REPORTED

    certificates = pipelines.list_certificates(mongo_db, 1, 10)
    assert certificates['results'][0]['request_no'] == 'REQ-2025-0001'

    DiscardedMaterial(
        job_id='MTL-2025-0042',
        sample_id=str(job.id),
        discard_reason='Retention period over',
        discard_date=datetime(2025, 6, 1),
        items=[DiscardedItem(item_no=lot.item_no, specimen_id='SP-0')],
    ).save()
    info = pipelines.job_complete_info(mongo_db, str(job.id))
    assert info['job']['lifecycle']['status'] == DISCARDED
    assert info['job']['lifecycle']['discard_date'] == '2025-06-01T00:00:00'
    assert info['lots'][0]['status'] == DISCARDED

    rows = pipelines.search_preparations(mongo_db, 1, 20, q='lab engineer')['results']
    assert [row['request_no'] for row in rows] == ['REQ-2025-0001']
    assert rows[0]['client_name'] == 'GRIPCO'
    assert rows[0]['specimen_ids'] == ['SP-0', 'SP-1']
