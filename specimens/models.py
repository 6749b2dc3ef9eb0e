from mongoengine import Document, fields
from datetime import datetime


class Specimen(Document):
    """
    Test piece cut from a sample lot. specimen_id is globally unique.
    A specimen does not point at its lot; the link lives in the
    specimen_oids of a preparation request item.
    """
    specimen_id = fields.StringField(max_length=100, unique=True, required=True)
    is_active = fields.BooleanField(default=True)
    created_at = fields.DateTimeField(default=datetime.now)
    updated_at = fields.DateTimeField(default=datetime.now)

    meta = {
        'collection': 'specimens',
        'indexes': ['specimen_id']
    }

    def save(self, *args, **kwargs):
        self.updated_at = datetime.now()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"Specimen {self.specimen_id}"
