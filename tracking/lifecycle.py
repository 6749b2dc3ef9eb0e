"""
Lifecycle status of a sample, derived from its child records on every read.

Nothing here is persisted: the status is a pure function of the snapshot of
preparations, certificates and discards that reference the sample, so there
is no stored status to go stale.

    discarded       a discard record references the sample
    reported        a certificate references one of its preparations
    in_preparation  a preparation request item references one of its lots
    received        none of the above

The first matching row wins.
"""
import logging
from collections import defaultdict

from lims_tracking.utilities.dates import iso_or_none, sort_key
from lims_tracking.utilities.references import document_keys, normalize
from samplepreparations.items import iter_lot_items, specimen_keys

logger = logging.getLogger(__name__)

RECEIVED = 'received'
IN_PREPARATION = 'in_preparation'
REPORTED = 'reported'
DISCARDED = 'discarded'

STATUSES = (RECEIVED, IN_PREPARATION, REPORTED, DISCARDED)


def derive_status(discards, certificates, preparations):
    if discards:
        return DISCARDED
    if certificates:
        return REPORTED
    if preparations:
        return IN_PREPARATION
    return RECEIVED


def certificate_preparation_reference(certificate):
    if certificate.get('request_id') is not None:
        return certificate['request_id']
    return certificate.get('preparationId')


def _earliest(values):
    values = [value for value in values if iso_or_none(value)]
    return iso_or_none(min(values, key=sort_key)) if values else None


def _latest(values):
    values = [value for value in values if iso_or_none(value)]
    return iso_or_none(max(values, key=sort_key)) if values else None


def summarize_lifecycle(lots, preparation_items, certificates, discards, received_date=None):
    """
    Status and counters of one sample, computed in a single pass.

    Args:
        lots: the sample's intake line items (sample lots)
        preparation_items: (preparation, request item) pairs tied to the sample
        certificates: certificates of those preparations
        discards: discard records of the sample
        received_date: intake date
    """
    preparations = {}
    specimens_count = 0
    for preparation, item in preparation_items:
        preparations.setdefault(normalize(preparation.get('_id')), preparation)
        specimens_count += len(specimen_keys(item))

    return {
        'status': derive_status(discards, certificates, preparations),
        'items_count': len(lots),
        'specimens_count': specimens_count,
        'received_date': iso_or_none(received_date),
        'preparation_date': _earliest(p.get('created_at') for p in preparations.values()),
        'report_issue_date': _latest(c.get('issue_date') or c.get('created_at') for c in certificates),
        'discard_date': _latest(d.get('discard_date') or d.get('created_at') for d in discards),
    }


class LifecycleIndex(object):
    """
    Child records of a set of samples, indexed by canonical key once so that
    the lifecycle of every job and lot on a page is derived without further
    queries.
    """

    def __init__(self, preparations=(), certificates=(), discards=()):
        self.items_by_lot = defaultdict(list)
        for preparation, item, lot_key in iter_lot_items(preparations):
            self.items_by_lot[lot_key].append((preparation, item))

        self.certificates_by_preparation = defaultdict(list)
        for certificate in certificates:
            key = normalize(certificate_preparation_reference(certificate))
            if key is None:
                logger.debug('Certificate %s references no preparation, ignored', certificate.get('_id'))
                continue
            self.certificates_by_preparation[key].append(certificate)

        self.discards_by_sample = defaultdict(list)
        for discard in discards:
            key = normalize(discard.get('sampleId'))
            if key is None:
                logger.debug('Discard record %s references no sample, ignored', discard.get('_id'))
                continue
            self.discards_by_sample[key].append(discard)

    def items_for(self, lots):
        seen = set()
        items = []
        for lot in lots:
            for key in document_keys(lot, 'item_no'):
                for preparation, item in self.items_by_lot.get(key, ()):
                    if id(item) in seen:
                        continue
                    seen.add(id(item))
                    items.append((preparation, item))
        return items

    def certificates_for(self, preparation_items):
        seen = set()
        certificates = []
        for preparation, _ in preparation_items:
            for key in document_keys(preparation, 'request_no'):
                for certificate in self.certificates_by_preparation.get(key, ()):
                    if id(certificate) in seen:
                        continue
                    seen.add(id(certificate))
                    certificates.append(certificate)
        return certificates

    def discards_for(self, *documents):
        """Discards referencing any of the (document, readable id field) pairs"""
        seen = set()
        discards = []
        for doc, human_field in documents:
            for key in document_keys(doc, human_field):
                for discard in self.discards_by_sample.get(key, ()):
                    if id(discard) in seen:
                        continue
                    seen.add(id(discard))
                    discards.append(discard)
        return discards

    def for_job(self, job, lots):
        items = self.items_for(lots)
        return summarize_lifecycle(
            lots,
            items,
            self.certificates_for(items),
            self.discards_for((job, 'job_id')),
            job.get('receive_date'),
        )

    def for_lot(self, job, lot):
        items = self.items_for([lot])
        sources = [(lot, 'item_no')]
        if job is not None:
            sources.insert(0, (job, 'job_id'))
        return summarize_lifecycle(
            [lot],
            items,
            self.certificates_for(items),
            self.discards_for(*sources),
            job.get('receive_date') if job is not None else lot.get('created_at'),
        )
