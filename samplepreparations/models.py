from mongoengine import Document, fields, EmbeddedDocument
from datetime import datetime


class RequestItem(EmbeddedDocument):
    """
    One line of a preparation request: a sample lot prepared for one test
    method, together with the specimens cut for it
    """
    request_id = fields.ObjectIdField(required=True)  # Reference to SampleLot._id
    test_method_oid = fields.ObjectIdField(required=True)  # Reference to TestMethod._id
    specimen_oids = fields.ListField(fields.ObjectIdField())  # References to Specimen._id
    item_description = fields.StringField(max_length=500)
    planned_test_date = fields.StringField(max_length=20)  # YYYY-MM-DD
    dimension_spec = fields.StringField(max_length=200)
    request_by = fields.StringField(max_length=100)
    remarks = fields.StringField()


class SamplePreparation(Document):
    """
    Preparation request grouping many lot/test/specimen items.
    Older documents keep their items under 'sample_lots' with the lot
    reference in 'sample_lot_id'; see samplepreparations.items.
    """
    request_no = fields.StringField(max_length=100, unique=True, required=True)
    request_items = fields.ListField(fields.EmbeddedDocumentField(RequestItem))
    is_active = fields.BooleanField(default=True)
    created_at = fields.DateTimeField(default=datetime.now)
    updated_at = fields.DateTimeField(default=datetime.now)

    meta = {
        'collection': 'sample_preparations',
        'indexes': ['request_no', 'request_items.request_id', 'is_active', '-created_at']
    }

    def save(self, *args, **kwargs):
        self.updated_at = datetime.now()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.request_no} - {len(self.request_items)} items"
