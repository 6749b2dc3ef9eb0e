"""
Batched reference resolution against the raw collections.

Every resolver issues at most one query per lookup strategy for a whole set
of references and returns a dict keyed by canonical key (see
lims_tracking.utilities.references.normalize). References that do not
resolve are simply missing from the result; callers render the gap as an
empty field instead of failing the request.
"""
from lims_tracking.exceptions import NotFound
from lims_tracking.utilities.references import (
    NATIVE, classify, document_variants, index_documents, normalize, pick_one,
)
from lims_tracking.utilities.search import active_filter
from samplepreparations.items import ITEM_ARRAY_FIELDS, LOT_REFERENCE_FIELDS
from tracking.lifecycle import LifecycleIndex


def _split_references(refs):
    """Split raw references into (ObjectIds, readable strings), dropping duplicates and unusable ones"""
    object_ids = []
    strings = []
    for raw in refs:
        ref = classify(raw)
        if ref is None:
            continue
        if ref.kind == NATIVE:
            if ref.value not in object_ids:
                object_ids.append(ref.value)
        elif ref.value not in strings:
            strings.append(ref.value)
    return object_ids, strings


def _with_active(query, active_only):
    if not active_only:
        return query
    return {'$and': [query, active_filter()]}


def _resolve_by_id_then_field(collection, refs, human_field, projection=None, active_only=False):
    """
    Look references up by _id first; whatever is left (readable strings, and
    ObjectIds that matched no _id) is looked up by human_field.
    """
    object_ids, strings = _split_references(refs)
    found = []
    if object_ids:
        found.extend(collection.find(_with_active({'_id': {'$in': object_ids}}, active_only), projection))

    if human_field:
        matched = {doc['_id'] for doc in found}
        fallback = strings + [str(oid) for oid in object_ids if oid not in matched]
        if fallback:
            found.extend(collection.find(_with_active({human_field: {'$in': fallback}}, active_only), projection))

    return index_documents(found, human_field, collection.name)


# ============= JOBS =============

def resolve_job(db, ref, active_only=True):
    """
    Resolve one job reference: by ObjectId first, then by readable job_id.
    Raises NotFound when neither matches.
    """
    parsed = classify(ref)
    if parsed is None:
        raise NotFound(f'Job {ref!r} not found')

    if parsed.kind == NATIVE:
        job = db.jobs.find_one(_with_active({'_id': parsed.value}, active_only))
        if job is not None:
            return job

    job_id = str(parsed.value)
    candidates = db.jobs.find(_with_active({'job_id': job_id}, active_only)).limit(2)
    job = pick_one(candidates, job_id, 'jobs')
    if job is None:
        raise NotFound(f'Job {ref} not found')
    return job


def resolve_jobs(db, refs):
    """canonical key -> job, for lot.job_id values of any stored shape"""
    return _resolve_by_id_then_field(db.jobs, refs, 'job_id')


# ============= SAMPLE LOTS =============

def resolve_sample_lots(db, refs):
    """canonical key -> sample lot, by ObjectId or item_no"""
    return _resolve_by_id_then_field(db.sample_lots, refs, 'item_no')


def lots_for_jobs(db, jobs, active_only=True):
    """All lots referencing any of the jobs, whichever shape their job_id is stored in"""
    variants = []
    for job in jobs:
        variants.extend(document_variants(job, 'job_id'))
    if not variants:
        return []
    query = _with_active({'job_id': {'$in': variants}}, active_only)
    return list(db.sample_lots.find(query).sort('created_at', -1))


def group_lots_by_job(jobs, lots):
    """str(job _id) -> lots of that job; lots whose job is not among jobs are dropped"""
    job_index = index_documents(jobs, 'job_id', 'jobs')
    grouped = {str(job['_id']): [] for job in jobs}
    for lot in lots:
        job = job_index.get(normalize(lot.get('job_id')))
        if job is not None:
            grouped[str(job['_id'])].append(lot)
    return grouped


# ============= NAMES =============

def client_names(db, refs):
    """canonical client key -> client name"""
    object_ids, _ = _split_references(refs)
    if not object_ids:
        return {}
    clients = db.clients.find({'_id': {'$in': object_ids}}, {'client_name': 1, 'name': 1})
    return {str(doc['_id']): doc.get('client_name') or doc.get('name') or '' for doc in clients}


def test_method_names(db, refs):
    """canonical test method key -> test_name"""
    object_ids, _ = _split_references(refs)
    if not object_ids:
        return {}
    methods = db.test_methods.find({'_id': {'$in': object_ids}}, {'test_name': 1})
    return {str(doc['_id']): doc.get('test_name', '') for doc in methods}


def specimen_ids(db, refs):
    """canonical specimen key -> readable specimen_id"""
    specimens = _resolve_by_id_then_field(db.specimens, refs, 'specimen_id', {'specimen_id': 1})
    return {key: doc.get('specimen_id', '') for key, doc in specimens.items()}


def preparations_by_reference(db, refs):
    """canonical key -> preparation, by ObjectId or request_no"""
    return _resolve_by_id_then_field(db.sample_preparations, refs, 'request_no', {'request_no': 1})


# ============= LIFECYCLE CHILDREN =============

def preparations_for_lots(db, lots):
    variants = []
    for lot in lots:
        variants.extend(document_variants(lot, 'item_no'))
    if not variants:
        return []
    alternatives = [
        {f'{array_field}.{ref_field}': {'$in': variants}}
        for array_field in ITEM_ARRAY_FIELDS for ref_field in LOT_REFERENCE_FIELDS
    ]
    return list(db.sample_preparations.find(_with_active({'$or': alternatives}, True)).sort('created_at', 1))


def certificates_for_preparations(db, preparations):
    variants = []
    for preparation in preparations:
        variants.extend(document_variants(preparation, 'request_no'))
    if not variants:
        return []
    query = {'$or': [{'request_id': {'$in': variants}}, {'preparationId': {'$in': variants}}]}
    return list(db.complete_certificates.find(_with_active(query, True)))


def discards_for_samples(db, jobs, lots):
    variants = []
    for job in jobs:
        variants.extend(document_variants(job, 'job_id'))
    for lot in lots:
        variants.extend(document_variants(lot, 'item_no'))
    if not variants:
        return []
    return list(db.discarded_materials.find(_with_active({'sampleId': {'$in': variants}}, True)))


def load_lifecycle_index(db, jobs, lots):
    """
    Read every child record the lifecycle of jobs and lots depends on and
    index it once: preparations of the lots, certificates of those
    preparations, discards of the jobs or lots.
    """
    preparations = preparations_for_lots(db, lots)
    certificates = certificates_for_preparations(db, preparations)
    discards = discards_for_samples(db, jobs, lots)
    return LifecycleIndex(preparations, certificates, discards)
