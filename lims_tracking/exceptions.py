"""
Error taxonomy of the traceability endpoints
"""


class LimsError(Exception):
    status_code = 500


class NotFound(LimsError):
    """A job, lot or certificate id resolved under neither its ObjectId nor its readable id"""
    status_code = 404


class AmbiguousReference(LimsError):
    status_code = 409

    def __init__(self, ref, collection, matches):
        self.ref = ref
        self.collection = collection
        self.matches = matches
        super().__init__(f'Reference {ref!r} matches {matches} documents in {collection}')


class AllocationRace(LimsError):
    """Every attempt to allocate an item_no collided with a concurrent writer"""
    status_code = 409

    def __init__(self, job_id, attempts):
        self.job_id = job_id
        self.attempts = attempts
        super().__init__(
            f'Could not allocate a unique item number for job {job_id} after {attempts} attempts, retry the request'
        )


class MalformedChildReference(LimsError):
    status_code = 422


class InvalidItemNumber(LimsError):
    """An explicit item_no that does not belong to the job it is created under"""
    status_code = 400

    def __init__(self, item_no, job_id):
        self.item_no = item_no
        self.job_id = job_id
        super().__init__(f'Item number "{item_no}" must start with "{job_id}-"')
