from mongoengine import Document, fields
from datetime import datetime


class Certificate(Document):
    """
    Test certificate issued for a preparation request.
    Its existence moves the samples of that request to the "reported" stage.
    """
    certificate_id = fields.StringField(max_length=100, unique=True, required=True)  # e.g. "CERT-2025-0195"
    request_id = fields.ObjectIdField(required=True)  # Reference to SamplePreparation._id
    date_of_sampling = fields.StringField(max_length=20)  # YYYY-MM-DD
    date_of_testing = fields.StringField(max_length=20)
    issue_date = fields.StringField(max_length=20)
    revision_no = fields.StringField(max_length=50)
    customers_name_no = fields.StringField(max_length=200)
    customer_po = fields.StringField(max_length=100)
    tested_by = fields.StringField(max_length=100)
    reviewed_by = fields.StringField(max_length=100)
    is_active = fields.BooleanField(default=True)
    created_at = fields.DateTimeField(default=datetime.now)
    updated_at = fields.DateTimeField(default=datetime.now)

    meta = {
        'collection': 'complete_certificates',
        'indexes': ['certificate_id', 'request_id', 'is_active']
    }

    def save(self, *args, **kwargs):
        self.updated_at = datetime.now()
        return super().save(*args, **kwargs)

    def __str__(self):
        return self.certificate_id
