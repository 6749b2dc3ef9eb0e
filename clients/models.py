from mongoengine import Document, fields
from datetime import datetime


class Client(Document):
    """
    Client submitting work to the laboratory
    Jobs reference a client by its ObjectId.
    """
    client_name = fields.StringField(max_length=200, required=True)
    company_name = fields.StringField(max_length=200)
    email = fields.EmailField()
    phone = fields.StringField(max_length=20)
    address = fields.StringField()
    contact_person = fields.StringField(max_length=100)
    is_active = fields.BooleanField(default=True)
    created_at = fields.DateTimeField(default=datetime.now)
    updated_at = fields.DateTimeField(default=datetime.now)

    meta = {
        'collection': 'clients',
        'indexes': ['client_name', 'is_active']
    }

    def save(self, *args, **kwargs):
        self.updated_at = datetime.now()
        return super().save(*args, **kwargs)

    def __str__(self):
        return self.client_name
