from mongoengine import Document, fields, EmbeddedDocument
from datetime import datetime


class DiscardedItem(EmbeddedDocument):
    item_no = fields.StringField(max_length=100)
    item_description = fields.StringField(max_length=500)
    test_method = fields.StringField(max_length=500)
    specimen_id = fields.StringField(max_length=100)
    test_conducted_date = fields.StringField(max_length=20)


class DiscardedMaterial(Document):
    """
    Record of sample material being disposed of, the terminal lifecycle state.
    sample_id (stored as 'sampleId') references the intake: the job's ObjectId
    or readable job_id, or a single lot's ObjectId / item_no.
    """
    job_id = fields.StringField(max_length=100)
    sample_id = fields.StringField(max_length=100, required=True, db_field='sampleId')
    discard_reason = fields.StringField()
    discard_date = fields.DateTimeField()
    items = fields.ListField(fields.EmbeddedDocumentField(DiscardedItem))
    is_active = fields.BooleanField(default=True)
    created_at = fields.DateTimeField(default=datetime.now)
    updated_at = fields.DateTimeField(default=datetime.now)

    meta = {
        'collection': 'discarded_materials',
        'indexes': ['sample_id', 'is_active']
    }

    def save(self, *args, **kwargs):
        self.updated_at = datetime.now()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"Discard of {self.sample_id}"
