from mongoengine import Document, fields
from datetime import datetime


class SampleLot(Document):
    """
    One material item registered under a job.
    item_no is "<job_id>-NNN" and unique across the collection, which is what
    turns two concurrent allocations of the same number into NotUniqueError.
    Lots written by older code paths may hold job_id as the job's readable id
    instead of its ObjectId, so reads go through the raw collection.
    """
    job_id = fields.ObjectIdField(required=True)  # Reference to Job._id
    item_no = fields.StringField(max_length=100, unique=True, required=True)
    sample_type = fields.StringField(max_length=100)  # e.g. 'cs', 'stainless steel', 'zinc coated'
    material_type = fields.StringField(max_length=100)  # e.g. 'plate', 'pipe', 'fastner', 'round'
    condition = fields.StringField(max_length=100)
    heat_no = fields.StringField(max_length=100)
    description = fields.StringField()
    mtc_no = fields.StringField(max_length=100)  # material test certificate number
    storage_location = fields.StringField(max_length=200)
    test_method_oids = fields.ListField(fields.ObjectIdField())  # References to TestMethod._id
    is_active = fields.BooleanField(default=True)
    created_at = fields.DateTimeField(default=datetime.now)
    updated_at = fields.DateTimeField(default=datetime.now)

    meta = {
        'collection': 'sample_lots',
        'indexes': ['job_id', 'item_no', 'is_active', '-created_at']
    }

    def save(self, *args, **kwargs):
        self.updated_at = datetime.now()
        return super().save(*args, **kwargs)

    def __str__(self):
        return self.item_no
