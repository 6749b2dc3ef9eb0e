"""
Request items of preparation documents, and the unwind/regroup transform.

Specimens are only reachable through two levels of arrays inside a
preparation: preparation -> request_items[] -> specimen_oids[]. Anything that
needs per-request specimen or lot information flattens the preparations to
one row per (item, specimen), joins the rows against the other collections,
and folds them back per request.
"""
import logging
from collections import OrderedDict

from lims_tracking.exceptions import MalformedChildReference
from lims_tracking.utilities.references import normalize

logger = logging.getLogger(__name__)

# Current documents use the first name, documents written by older releases the second
ITEM_ARRAY_FIELDS = ('request_items', 'sample_lots')
LOT_REFERENCE_FIELDS = ('request_id', 'sample_lot_id')
ITEM_TEXT_FIELDS = ('item_description', 'request_by', 'remarks')


def request_items(preparation):
    for field in ITEM_ARRAY_FIELDS:
        items = preparation.get(field)
        if isinstance(items, list):
            return [item for item in items if isinstance(item, dict)]
    return []


def lot_reference(item):
    for field in LOT_REFERENCE_FIELDS:
        if item.get(field) is not None:
            return item[field]
    return None


def item_lot_key(item):
    """Canonical key of the sample lot an item prepares"""
    raw = lot_reference(item)
    key = normalize(raw)
    if key is None:
        raise MalformedChildReference(f'request item has no usable sample lot reference ({raw!r})')
    return key


def specimen_keys(item):
    """Canonical keys of the item's specimens; unusable entries are dropped"""
    refs = item.get('specimen_oids')
    if not isinstance(refs, list):
        return []
    keys = []
    for ref in refs:
        key = normalize(ref)
        if key is None:
            logger.debug('Dropping malformed specimen reference %r', ref)
            continue
        keys.append(key)
    return keys


def iter_lot_items(preparations):
    """
    Yield (preparation, item, lot_key) for every request item whose sample
    lot reference can be normalized. Other items are skipped, they add
    nothing to any count.
    """
    for preparation in preparations:
        for index, item in enumerate(request_items(preparation)):
            try:
                lot_key = item_lot_key(item)
            except MalformedChildReference as error:
                logger.debug('Skipping item %d of preparation %s: %s', index, preparation.get('_id'), error)
                continue
            yield preparation, item, lot_key


def flatten_preparations(preparations):
    """
    Unwind request items, then each item's specimens.

    Yields one dict per (item, specimen) with keys preparation, item,
    lot_key and specimen_key. An item without specimens still yields one row
    (specimen_key None) so its lot takes part in the joins.
    """
    for preparation, item, lot_key in iter_lot_items(preparations):
        keys = specimen_keys(item)
        if not keys:
            yield {'preparation': preparation, 'item': item, 'lot_key': lot_key, 'specimen_key': None}
            continue
        for specimen_key in keys:
            yield {'preparation': preparation, 'item': item, 'lot_key': lot_key, 'specimen_key': specimen_key}


def regroup_preparations(preparations, rows, lots, jobs, client_names, specimen_ids):
    """
    Fold flattened rows back into one summary per preparation.

    Args:
        preparations: the preparation documents, in output order
        rows: output of flatten_preparations for those documents
        lots: canonical lot key -> sample lot document
        jobs: canonical job key -> job document
        client_names: canonical client key -> client name
        specimen_ids: canonical specimen key -> readable specimen_id

    Unresolved lots, jobs, clients and specimens leave their fields empty.
    no_of_request_items counts the items that made it into rows, so an item
    without a usable lot reference counts as zero.
    """
    grouped = OrderedDict()
    for preparation in preparations:
        grouped[normalize(preparation.get('_id'))] = {
            'preparation': preparation,
            'job': None,
            'client_name': '',
            'item_nos': [],
            'specimen_ids': [],
            'specimens_count': 0,
            'item_texts': [],
            'seen_items': set(),
        }

    for row in rows:
        group = grouped.get(normalize(row['preparation'].get('_id')))
        if group is None:
            continue

        item_identity = id(row['item'])
        if item_identity not in group['seen_items']:
            group['seen_items'].add(item_identity)
            group['item_texts'].extend(
                row['item'].get(field) for field in ITEM_TEXT_FIELDS if row['item'].get(field)
            )

        lot = lots.get(row['lot_key'])
        if lot is not None:
            if lot.get('item_no') and lot['item_no'] not in group['item_nos']:
                group['item_nos'].append(lot['item_no'])
            job = jobs.get(normalize(lot.get('job_id')))
            if job is not None and group['job'] is None:
                group['job'] = job
                group['client_name'] = client_names.get(normalize(job.get('client_id')), '')

        if row['specimen_key'] is not None:
            group['specimens_count'] += 1
            specimen_id = specimen_ids.get(row['specimen_key'])
            if specimen_id and specimen_id not in group['specimen_ids']:
                group['specimen_ids'].append(specimen_id)

    summaries = []
    for group in grouped.values():
        preparation = group['preparation']
        job = group['job'] or {}
        summaries.append({
            'id': str(preparation.get('_id', '')),
            'request_no': preparation.get('request_no', ''),
            'job_id': job.get('job_id', ''),
            'project_name': job.get('project_name', ''),
            'client_name': group['client_name'],
            'created_at': preparation.get('created_at'),
            'no_of_request_items': len(group['seen_items']),
            'item_nos': group['item_nos'],
            'specimen_ids': group['specimen_ids'],
            'specimens_count': group['specimens_count'],
            'search_texts': group['item_texts'],
        })
    return summaries
