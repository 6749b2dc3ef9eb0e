"""
Reference normalization for foreign keys stored in more than one shape.

Depending on the write path a foreign key field may hold the referenced
document's ObjectId, the hex string of that ObjectId, or the human readable
identifier (job_id, item_no, ...) copied at write time. Everything in this
module reduces those shapes to one canonical comparison key so that joins
can be done with plain equality.
"""
import logging
import re
from collections import namedtuple

from bson import ObjectId

from lims_tracking.exceptions import AmbiguousReference

logger = logging.getLogger(__name__)

NATIVE = 'native'
STRING = 'string'

Reference = namedtuple('Reference', ['kind', 'value'])

_OBJECT_ID_HEX = re.compile(r'^[0-9a-fA-F]{24}$')


def looks_like_object_id(value):
    """True if value is a syntactically valid ObjectId hex string (24 hex chars)"""
    return isinstance(value, str) and bool(_OBJECT_ID_HEX.match(value.strip()))


def classify(value):
    """
    Resolve a raw reference to Reference(NATIVE, ObjectId) or Reference(STRING, str).

    Returns None when the value carries no usable reference (None, empty
    string, containers). Never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, ObjectId):
        return Reference(NATIVE, value)
    if isinstance(value, bytes):
        if len(value) == 12:
            return Reference(NATIVE, ObjectId(value))
        return None
    if isinstance(value, dict):
        # extended JSON, {"$oid": "..."}
        if set(value) == {'$oid'}:
            return classify(value['$oid'])
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if looks_like_object_id(text):
            return Reference(NATIVE, ObjectId(text))
        return Reference(STRING, text)
    if isinstance(value, (int, float)):
        return Reference(STRING, str(value))
    return None


def normalize(value):
    """
    Canonical key of a reference: lowercase hex for ObjectIds, the stripped
    string for human readable identifiers, None when nothing usable is there.
    """
    ref = classify(value)
    if ref is None:
        return None
    return str(ref.value)


def to_object_id(value):
    """ObjectId for a native reference, None for anything else"""
    ref = classify(value)
    if ref is not None and ref.kind == NATIVE:
        return ref.value
    return None


def storage_variants(value):
    """
    Every literal value a foreign key field may hold for this reference.
    Suitable for a ``{'$in': [...]}`` query.
    """
    ref = classify(value)
    if ref is None:
        return []
    if ref.kind == NATIVE:
        return [ref.value, str(ref.value)]
    return [ref.value]


def same_reference(left, right):
    key = normalize(left)
    return key is not None and key == normalize(right)


def document_keys(doc, human_field=None):
    """Canonical keys under which a document can be referenced"""
    keys = []
    for raw in (doc.get('_id'), doc.get(human_field) if human_field else None):
        key = normalize(raw)
        if key is not None and key not in keys:
            keys.append(key)
    return keys


def document_variants(doc, human_field=None):
    """Stored shapes other collections may use to point at this document"""
    variants = storage_variants(doc.get('_id'))
    if human_field:
        for value in storage_variants(doc.get(human_field)):
            if value not in variants:
                variants.append(value)
    return variants


def index_documents(docs, human_field=None, collection=''):
    """
    Map every canonical key of every document to that document.

    A key claimed by two different documents is a data quality problem: the
    first document keeps the key and the collision is logged.
    """
    index = {}
    for doc in docs:
        for key in document_keys(doc, human_field):
            current = index.get(key)
            if current is None:
                index[key] = doc
            elif current.get('_id') != doc.get('_id'):
                logger.warning(
                    'Ambiguous reference %r in %s: matches %s and %s, keeping the first',
                    key, collection or 'collection', current.get('_id'), doc.get('_id')
                )
    return index


def pick_one(candidates, ref, collection='', strict=False):
    """
    First-match-wins selection among documents matching one reference.

    With strict=True more than one candidate raises AmbiguousReference,
    otherwise the ambiguity is only logged.
    """
    candidates = list(candidates)
    if not candidates:
        return None
    if len(candidates) > 1:
        error = AmbiguousReference(ref, collection, len(candidates))
        if strict:
            raise error
        logger.warning('%s; using the first match', error)
    return candidates[0]
