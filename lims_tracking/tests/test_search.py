from lims_tracking.utilities.search import active_filter, build_filter, contains_text, text_filter

JOB_FIELDS = ('job_id', 'project_name', 'received_by', 'end_user')


def _job_ids(db, query):
    return sorted(doc['job_id'] for doc in db.jobs.find(query))


def test_active_filter_accepts_true_and_missing(mongo_db):
    mongo_db.jobs.insert_many([
        {'job_id': 'J-1', 'is_active': True},
        {'job_id': 'J-2'},
        {'job_id': 'J-3', 'is_active': False},
    ])
    assert _job_ids(mongo_db, active_filter()) == ['J-1', 'J-2']


def test_build_filter_is_idempotent(mongo_db):
    mongo_db.jobs.insert_many([
        {'job_id': 'J-1', 'project_name': 'Pipeline', 'is_active': True},
        {'job_id': 'J-2', 'project_name': 'Refinery'},
        {'job_id': 'J-3', 'project_name': 'Pipeline', 'is_active': False},
    ])
    first = build_filter('pipe', JOB_FIELDS)
    second = build_filter('pipe', JOB_FIELDS)

    assert first == second
    assert _job_ids(mongo_db, first) == _job_ids(mongo_db, second) == ['J-1']


def test_gripco_search(mongo_db):
    mongo_db.jobs.insert_many([
        {'job_id': 'GRIPCO-24-01', 'project_name': 'Tank farm'},
        {'job_id': 'J-2', 'project_name': 'Gripco refinery'},
        {'job_id': 'J-3', 'received_by': 'gripco desk'},
        {'job_id': 'J-4', 'end_user': 'GripCo Ltd', 'is_active': True},
        {'job_id': 'J-5', 'project_name': 'GRIPCO closed', 'is_active': False},
        {'job_id': 'J-6', 'project_name': 'Other', 'remarks': 'GRIPCO'},
    ])
    query = build_filter('GRIPCO', JOB_FIELDS)
    assert _job_ids(mongo_db, query) == ['GRIPCO-24-01', 'J-2', 'J-3', 'J-4']


def test_search_text_is_literal(mongo_db):
    mongo_db.jobs.insert_many([
        {'job_id': 'J-1', 'project_name': 'a.b'},
        {'job_id': 'J-2', 'project_name': 'axb'},
    ])
    assert _job_ids(mongo_db, text_filter('a.b', JOB_FIELDS)) == ['J-1']


def test_blank_search_only_filters_soft_deletes():
    assert build_filter('   ', JOB_FIELDS) == active_filter()
    assert build_filter(None, JOB_FIELDS, active_only=False) == {}


def test_also_match_widens_the_text_match():
    query = build_filter('J-1', ('item_no',), also_match=[{'job_id': {'$in': ['x']}}])
    text_clause = query['$and'][1]
    assert {'job_id': {'$in': ['x']}} in text_clause['$or']
    assert len(text_clause['$or']) == 2


def test_extra_clauses_are_and_ed():
    query = build_filter(extra=[{'created_at': {'$gte': 1}}])
    assert query == {'$and': [active_filter(), {'created_at': {'$gte': 1}}]}


def test_contains_text():
    assert contains_text('GripCo Ltd', ' gripco ')
    assert not contains_text(None, 'x')
    assert not contains_text('abc', '')
