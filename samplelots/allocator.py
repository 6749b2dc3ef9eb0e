"""
Sequential item numbers for sample lots: "<job_id>-001", "<job_id>-002", ...

The next number is computed from the lots already stored for the job, which
is a read followed by a write. Two requests for the same job can compute the
same number; the unique index on item_no rejects the second insert and the
allocation is simply recomputed.
"""
import logging
import re

from mongoengine import connection
from mongoengine.errors import NotUniqueError

from lims_tracking.exceptions import AllocationRace, InvalidItemNumber
from lims_tracking.utilities.references import document_variants
from .models import SampleLot

logger = logging.getLogger(__name__)

ALLOCATION_ATTEMPTS = 5

_ITEM_SUFFIX = re.compile(r'-(\d+)$')


def parse_item_suffix(item_no):
    """Trailing integer of an item number ("J-2024-007-012" -> 12), None if there is none"""
    if not isinstance(item_no, str):
        return None
    match = _ITEM_SUFFIX.search(item_no.strip())
    if not match:
        return None
    return int(match.group(1))


def format_item_no(job_id, sequence):
    return f'{job_id}-{sequence:03d}'


def next_item_no(job_doc, db=None, floor=0):
    """
    Next free item number of a job.

    Every lot of the job counts, soft-deleted ones included, so a number is
    never handed out twice. Numbers that do not parse are ignored; a job
    without any parseable number starts at 001. The result is always above
    floor.
    """
    if db is None:
        db = connection.get_db()

    variants = document_variants(job_doc, 'job_id')
    highest = floor
    for lot in db.sample_lots.find({'job_id': {'$in': variants}}, {'item_no': 1}):
        suffix = parse_item_suffix(lot.get('item_no'))
        if suffix is not None and suffix > highest:
            highest = suffix

    return format_item_no(job_doc['job_id'], highest + 1)


def create_sample_lot(job_doc, fields, item_no=None, attempts=ALLOCATION_ATTEMPTS):
    """
    Insert a sample lot under job_doc.

    An explicit item_no must carry the job_id prefix and is inserted as given;
    a duplicate raises NotUniqueError. Without one the number is allocated,
    and reallocated above the collided number when the unique index rejected
    it. The index spans every job, so the colliding lot may belong to another
    job. AllocationRace is raised once all attempts collided.
    """
    explicit = bool(item_no and str(item_no).strip())
    if explicit and not str(item_no).strip().startswith(f"{job_doc['job_id']}-"):
        raise InvalidItemNumber(str(item_no).strip(), job_doc['job_id'])

    db = connection.get_db()
    floor = 0

    for attempt in range(1, attempts + 1):
        number = str(item_no).strip() if explicit else next_item_no(job_doc, db, floor=floor)
        sample_lot = SampleLot(job_id=job_doc['_id'], item_no=number, **fields)
        try:
            sample_lot.save(force_insert=True)
        except NotUniqueError:
            if explicit:
                raise
            logger.warning(
                'Item number %s of job %s was taken concurrently (attempt %d of %d)',
                number, job_doc.get('job_id'), attempt, attempts
            )
            floor = max(floor, parse_item_suffix(number) or 0)
            continue

        logger.info('Created sample lot %s for job %s', sample_lot.item_no, job_doc.get('job_id'))
        return sample_lot

    raise AllocationRace(job_doc.get('job_id'), attempts)
