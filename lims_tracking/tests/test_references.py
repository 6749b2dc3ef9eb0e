import logging

import pytest
from bson import ObjectId

from lims_tracking.exceptions import AmbiguousReference
from lims_tracking.utilities.references import (
    NATIVE, STRING, classify, document_keys, index_documents, looks_like_object_id,
    normalize, pick_one, same_reference, storage_variants,
)

OID = ObjectId('65f1a2b3c4d5e6f7a8b9c0d1')


class TestClassify:

    def test_object_id_is_native(self):
        assert classify(OID) == (NATIVE, OID)

    def test_hex_string_is_native(self):
        assert classify('65F1A2B3C4D5E6F7A8B9C0D1') == (NATIVE, OID)

    def test_extended_json_is_native(self):
        assert classify({'$oid': str(OID)}) == (NATIVE, OID)

    def test_raw_bytes_are_native(self):
        assert classify(OID.binary) == (NATIVE, OID)

    def test_readable_id_is_string(self):
        assert classify('  J-2024-007 ') == (STRING, 'J-2024-007')

    def test_almost_hex_is_string(self):
        # 23 characters
        assert classify('65f1a2b3c4d5e6f7a8b9c0d').kind == STRING
        # right length, one non-hex character
        assert classify('65f1a2b3c4d5e6f7a8b9c0dz').kind == STRING

    def test_numbers_are_strings(self):
        assert classify(42) == (STRING, '42')

    @pytest.mark.parametrize('value', [None, '', '   ', True, [], {}, {'id': 'x'}, b'short'])
    def test_unusable_values(self, value):
        assert classify(value) is None
        assert normalize(value) is None


def test_three_storage_shapes_share_one_key():
    assert normalize(OID) == normalize(str(OID)) == normalize(str(OID).upper()) == str(OID)


def test_readable_and_native_keys_differ():
    assert not same_reference(OID, 'J-2024-007')
    assert not same_reference(None, None)


def test_looks_like_object_id():
    assert looks_like_object_id(str(OID))
    assert not looks_like_object_id('J-2024-007')
    assert not looks_like_object_id(OID)


def test_storage_variants():
    assert storage_variants(OID) == [OID, str(OID)]
    assert storage_variants(str(OID)) == [OID, str(OID)]
    assert storage_variants('J-1') == ['J-1']
    assert storage_variants(None) == []


def test_document_keys():
    doc = {'_id': OID, 'job_id': 'J-1'}
    assert document_keys(doc, 'job_id') == [str(OID), 'J-1']
    assert document_keys({'_id': OID}, 'job_id') == [str(OID)]


def test_index_documents_first_wins(caplog):
    first = {'_id': ObjectId(), 'job_id': 'J-1'}
    second = {'_id': ObjectId(), 'job_id': 'J-1'}

    with caplog.at_level(logging.WARNING, logger='lims_tracking.utilities.references'):
        index = index_documents([first, second], 'job_id', 'jobs')

    assert index['J-1'] is first
    assert index[str(second['_id'])] is second
    assert 'Ambiguous reference' in caplog.text


def test_pick_one():
    docs = [{'_id': 1}, {'_id': 2}]
    assert pick_one([], 'J-1') is None
    assert pick_one(docs, 'J-1', 'jobs') == {'_id': 1}
    with pytest.raises(AmbiguousReference) as excinfo:
        pick_one(docs, 'J-1', 'jobs', strict=True)
    assert excinfo.value.status_code == 409
    assert excinfo.value.matches == 2
