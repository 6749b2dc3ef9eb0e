"""
Join/aggregation pipelines behind the list, search and detail endpoints.

Each pipeline runs a chain of dependent reads (page of parents, then the
children, then their names), batching the independent lookups of one stage
into a single query per collection.
"""
from lims_tracking.utilities.dates import end_of_day, iso_or_none, parse_date, sort_key
from lims_tracking.utilities.pagination import create_pagination_response, paginate_cursor, paginate_list
from lims_tracking.utilities.references import document_variants, normalize
from lims_tracking.utilities.search import build_filter, contains_text, text_filter
from samplepreparations.items import flatten_preparations, regroup_preparations
from samplelots.allocator import parse_item_suffix
from tracking import resolvers
from tracking.lifecycle import certificate_preparation_reference

JOB_SEARCH_FIELDS = ('job_id', 'project_name', 'received_by', 'end_user')
SAMPLE_LOT_SEARCH_FIELDS = (
    'item_no', 'job_id', 'sample_type', 'material_type', 'condition',
    'heat_no', 'description', 'storage_location',
)
CERTIFICATE_SEARCH_FIELDS = ('certificate_id', 'customers_name_no', 'customer_po', 'tested_by', 'reviewed_by')
SPECIMEN_SEARCH_FIELDS = ('specimen_id',)
PREPARATION_TEXT_FIELDS = ('request_no', 'job_id', 'project_name', 'client_name')


def _text(value):
    return '' if value is None else str(value)


def _optional_text(value):
    return None if value is None else str(value)


def _lot_sort_key(lot):
    suffix = parse_item_suffix(lot.get('item_no'))
    return (suffix is None, suffix or 0, _text(lot.get('item_no')))


# ============= SERIALIZERS =============

def serialize_job(job, client_name='', sample_count=0):
    return {
        'id': str(job.get('_id', '')),
        'job_id': job.get('job_id', ''),
        'client_id': _text(job.get('client_id')),
        'client_name': client_name or '',
        'project_name': job.get('project_name', ''),
        'end_user': job.get('end_user'),
        'receive_date': iso_or_none(job.get('receive_date')),
        'received_by': job.get('received_by'),
        'remarks': job.get('remarks'),
        'sample_count': sample_count,
        'is_active': job.get('is_active') is not False,
        'created_at': iso_or_none(job.get('created_at')),
        'updated_at': iso_or_none(job.get('updated_at')),
    }


def serialize_lot(lot, job=None, client_name='', method_names=None):
    method_oids = lot.get('test_method_oids') if isinstance(lot.get('test_method_oids'), list) else []
    data = {
        'id': str(lot.get('_id', '')),
        # readable job id when the parent resolves, the stored value otherwise
        'job_id': job.get('job_id', '') if job else _text(lot.get('job_id')),
        'job_oid': str(job['_id']) if job else None,
        'client_name': client_name or '',
        'item_no': _text(lot.get('item_no')),
        'sample_type': _optional_text(lot.get('sample_type')),
        'material_type': _optional_text(lot.get('material_type')),
        'condition': _optional_text(lot.get('condition')),
        'heat_no': _optional_text(lot.get('heat_no')),
        'description': _optional_text(lot.get('description')),
        'mtc_no': _optional_text(lot.get('mtc_no')),
        'storage_location': _optional_text(lot.get('storage_location')),
        'test_method_oids': [str(oid) for oid in method_oids],
        'is_active': lot.get('is_active') is not False,
        'created_at': iso_or_none(lot.get('created_at')),
        'updated_at': iso_or_none(lot.get('updated_at')),
    }
    if method_names is not None:
        data['test_method_names'] = [method_names.get(normalize(oid), '') for oid in method_oids]
    return data


# ============= JOBS =============

def list_jobs(db, page, page_size, search_text=None):
    """
    Page of jobs with client name and number of active sample lots
    """
    query = build_filter(search_text, JOB_SEARCH_FIELDS)
    jobs, total = paginate_cursor(db.jobs, query, page, page_size)

    clients = resolvers.client_names(db, [job.get('client_id') for job in jobs])
    lots_by_job = resolvers.group_lots_by_job(jobs, resolvers.lots_for_jobs(db, jobs))

    results = [
        serialize_job(job, clients.get(normalize(job.get('client_id')), ''), len(lots_by_job[str(job['_id'])]))
        for job in jobs
    ]
    return create_pagination_response(results, total, page, page_size)


def job_complete_info(db, ref):
    """
    A job with all its active sample lots, their test method names and the
    derived lifecycle of the job and of each lot. Raises NotFound.
    """
    job = resolvers.resolve_job(db, ref)
    client_name = resolvers.client_names(db, [job.get('client_id')]).get(normalize(job.get('client_id')), '')

    lots = sorted(resolvers.lots_for_jobs(db, [job]), key=_lot_sort_key)
    methods = resolvers.test_method_names(
        db, [oid for lot in lots for oid in (lot.get('test_method_oids') or [])]
    )
    lifecycle = resolvers.load_lifecycle_index(db, [job], lots)

    job_data = serialize_job(job, client_name, len(lots))
    job_data['lifecycle'] = lifecycle.for_job(job, lots)

    lots_data = []
    for lot in lots:
        data = serialize_lot(lot, job, client_name, methods)
        summary = lifecycle.for_lot(job, lot)
        data['status'] = summary['status']
        data['specimens_count'] = summary['specimens_count']
        lots_data.append(data)

    return {'job': job_data, 'lots': lots_data}


# ============= SAMPLE LOTS =============

def list_sample_lots(db, page, page_size, search_text=None, active_only=True):
    """
    Page of sample lots, newest first, with the parent job resolved whatever
    shape lot.job_id is stored in
    """
    also_match = []
    if search_text and search_text.strip():
        # lots holding the job's ObjectId cannot match a job_id regex themselves
        variants = []
        for job in db.jobs.find(text_filter(search_text, ('job_id',)), {'job_id': 1}):
            variants.extend(document_variants(job, 'job_id'))
        if variants:
            also_match.append({'job_id': {'$in': variants}})

    query = build_filter(search_text, SAMPLE_LOT_SEARCH_FIELDS, active_only=active_only, also_match=also_match)
    lots, total = paginate_cursor(db.sample_lots, query, page, page_size)

    jobs = resolvers.resolve_jobs(db, [lot.get('job_id') for lot in lots])
    clients = resolvers.client_names(db, [job.get('client_id') for job in jobs.values()])
    methods = resolvers.test_method_names(
        db, [oid for lot in lots for oid in (lot.get('test_method_oids') or [])]
    )

    results = []
    for lot in lots:
        job = jobs.get(normalize(lot.get('job_id')))
        client_name = clients.get(normalize(job.get('client_id')), '') if job else ''
        results.append(serialize_lot(lot, job, client_name, methods))

    return create_pagination_response(results, total, page, page_size)


# ============= SAMPLE PREPARATIONS =============

def _preparation_matches(summary, q, job_id, client_name, project_name, specimen_id):
    if q:
        haystack = [summary[field] for field in PREPARATION_TEXT_FIELDS]
        haystack += summary['search_texts'] + summary['specimen_ids'] + summary['item_nos']
        if not any(contains_text(value, q) for value in haystack):
            return False
    if job_id and not contains_text(summary['job_id'], job_id):
        return False
    if client_name and not contains_text(summary['client_name'], client_name):
        return False
    if project_name and not contains_text(summary['project_name'], project_name):
        return False
    if specimen_id and not any(contains_text(value, specimen_id) for value in summary['specimen_ids']):
        return False
    return True


def _created_within(preparation, start, end):
    if start is None and end is None:
        return True
    dated, created_at = sort_key(preparation.get('created_at'))
    if not dated:
        return False
    return (start is None or created_at >= start) and (end is None or created_at <= end)


def search_preparations(db, page, page_size, q='', job_id='', client_name='', project_name='',
                        specimen_id='', date_from='', date_to=''):
    """
    Preparation requests with their job, client and specimen ids.

    Preparations are unwound to (item, specimen) rows, joined against lots,
    jobs, clients and specimens, and regrouped per request. Filters on joined
    fields run before pagination so count and next/previous describe the
    filtered set.
    """
    start = sort_key(date_from)[1] if parse_date(date_from) else None
    end = end_of_day(date_to)

    # created_at is stored both as datetime and as ISO string, so the range is applied here
    preparations = [
        prep for prep in db.sample_preparations.find(build_filter())
        if _created_within(prep, start, end)
    ]
    preparations.sort(key=lambda prep: sort_key(prep.get('created_at')), reverse=True)

    rows = list(flatten_preparations(preparations))
    lots = resolvers.resolve_sample_lots(db, [row['lot_key'] for row in rows])
    jobs = resolvers.resolve_jobs(db, [lot.get('job_id') for lot in lots.values()])
    clients = resolvers.client_names(db, [job.get('client_id') for job in jobs.values()])
    specimens = resolvers.specimen_ids(db, [row['specimen_key'] for row in rows])

    summaries = regroup_preparations(preparations, rows, lots, jobs, clients, specimens)
    summaries = [
        summary for summary in summaries
        if _preparation_matches(summary, (q or '').strip(), job_id, client_name, project_name, specimen_id)
    ]

    page_rows, total = paginate_list(summaries, page, page_size)
    results = []
    for summary in page_rows:
        summary = dict(summary)
        summary.pop('search_texts')
        summary['created_at'] = iso_or_none(summary['created_at'])
        results.append(summary)

    return create_pagination_response(results, total, page, page_size)


# ============= CERTIFICATES =============

def list_certificates(db, page, page_size, search_text=None):
    query = build_filter(search_text, CERTIFICATE_SEARCH_FIELDS)
    certificates, total = paginate_cursor(db.complete_certificates, query, page, page_size)

    preparations = resolvers.preparations_by_reference(
        db, [certificate_preparation_reference(cert) for cert in certificates]
    )

    results = []
    for cert in certificates:
        reference = certificate_preparation_reference(cert)
        preparation = preparations.get(normalize(reference))
        results.append({
            'id': str(cert.get('_id', '')),
            'certificate_id': cert.get('certificate_id', ''),
            'request_id': _text(reference),
            'request_no': preparation.get('request_no', '') if preparation else '',
            'issue_date': cert.get('issue_date'),
            'date_of_testing': cert.get('date_of_testing'),
            'customers_name_no': cert.get('customers_name_no'),
            'created_at': iso_or_none(cert.get('created_at')),
        })

    return create_pagination_response(results, total, page, page_size)


# ============= TRACKING =============

def _tracking_rows(db, jobs):
    lots = resolvers.lots_for_jobs(db, jobs)
    lots_by_job = resolvers.group_lots_by_job(jobs, lots)
    clients = resolvers.client_names(db, [job.get('client_id') for job in jobs])
    lifecycle = resolvers.load_lifecycle_index(db, jobs, lots)

    rows = []
    for job in jobs:
        summary = lifecycle.for_job(job, lots_by_job[str(job['_id'])])
        rows.append({
            'id': str(job['_id']),
            'job_id': job.get('job_id', ''),
            'project_name': job.get('project_name', ''),
            'client_name': clients.get(normalize(job.get('client_id')), ''),
            'items_count': summary['items_count'],
            'specimens_count': summary['specimens_count'],
            'latest_status': summary['status'],
            'received_date': summary['received_date'],
            'preparation_date': summary['preparation_date'],
            'report_issue_date': summary['report_issue_date'],
            'discard_date': summary['discard_date'],
        })
    return rows


def list_tracking_rows(db, page, page_size, search_text=None, status=None):
    """
    One row per job with its derived lifecycle status.
    Filtering by status needs the status of every matching job, so that path
    derives all rows before paginating.
    """
    query = build_filter(search_text, JOB_SEARCH_FIELDS)

    if not status:
        jobs, total = paginate_cursor(db.jobs, query, page, page_size)
        return create_pagination_response(_tracking_rows(db, jobs), total, page, page_size)

    jobs = list(db.jobs.find(query).sort('created_at', -1))
    rows = [row for row in _tracking_rows(db, jobs) if row['latest_status'] == status]
    page_rows, total = paginate_list(rows, page, page_size)
    return create_pagination_response(page_rows, total, page, page_size)


# ============= SPECIMENS =============

def list_specimens(db, page, page_size, search_text=None):
    query = build_filter(search_text, SPECIMEN_SEARCH_FIELDS)
    specimens, total = paginate_cursor(db.specimens, query, page, page_size)
    results = [
        {
            'id': str(doc.get('_id', '')),
            'specimen_id': doc.get('specimen_id', ''),
            'created_at': iso_or_none(doc.get('created_at')),
            'updated_at': iso_or_none(doc.get('updated_at')),
        }
        for doc in specimens
    ]
    return create_pagination_response(results, total, page, page_size)
