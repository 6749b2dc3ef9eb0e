from mongoengine import Document, fields
from datetime import datetime


class TestMethod(Document):
    """
    Test method a sample lot can be scheduled for, e.g. "Adhesion Test ASTM F1281"
    Only test_name is read by the tracking views.
    """
    test_name = fields.StringField(max_length=500, required=True)
    test_description = fields.StringField()
    test_columns = fields.ListField(fields.StringField(max_length=100))
    hasImage = fields.BooleanField(default=False)
    is_active = fields.BooleanField(default=True)
    createdAt = fields.DateTimeField(default=datetime.now)
    updatedAt = fields.DateTimeField(default=datetime.now)

    meta = {
        'collection': 'test_methods',
        'indexes': ['test_name', 'is_active']
    }

    def save(self, *args, **kwargs):
        self.updatedAt = datetime.now()
        return super().save(*args, **kwargs)

    def __str__(self):
        return self.test_name
