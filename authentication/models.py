from mongoengine import Document, fields
from datetime import datetime
import hashlib
import hmac
import secrets

PASSWORD_ITERATIONS = 100000


def hash_password(password, salt=None):
    """Return 'salt:hexdigest' for a PBKDF2-SHA256 hash of password"""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt.encode('utf-8'), PASSWORD_ITERATIONS)
    return f"{salt}:{digest.hex()}"


class User(Document):
    """
    Laboratory staff account, used only to guard the tracking endpoints
    """
    ROLE_CHOICES = [
        ('admin', 'Admin'),
        ('project_coordinator', 'Project Coordinator'),
        ('lab_engg', 'Lab Engineer'),
        ('lab_technician', 'Lab Technician'),
    ]

    username = fields.StringField(max_length=100, unique=True, required=True)
    email = fields.EmailField(unique=True, required=True)
    password_hash = fields.StringField(required=True)
    first_name = fields.StringField(max_length=100)
    last_name = fields.StringField(max_length=100)
    role = fields.StringField(choices=ROLE_CHOICES, required=True)
    is_active = fields.BooleanField(default=True)
    last_login = fields.DateTimeField()
    created_at = fields.DateTimeField(default=datetime.now)
    updated_at = fields.DateTimeField(default=datetime.now)

    meta = {
        'collection': 'users',
        'indexes': ['username', 'email', 'role', 'is_active']
    }

    def save(self, *args, **kwargs):
        self.updated_at = datetime.now()
        return super().save(*args, **kwargs)

    def set_password(self, password):
        self.password_hash = hash_password(password)

    def check_password(self, password):
        if not self.password_hash or ':' not in self.password_hash:
            return False
        salt = self.password_hash.split(':', 1)[0]
        return hmac.compare_digest(hash_password(password, salt), self.password_hash)

    def to_dict(self):
        return {
            'id': str(self.id),
            'username': self.username,
            'email': self.email,
            'first_name': self.first_name or '',
            'last_name': self.last_name or '',
            'role': self.role,
        }

    def __str__(self):
        return f"{self.username} ({self.role})"


class RefreshToken(Document):
    """
    Opaque refresh token issued at login
    """
    user = fields.ReferenceField(User, required=True)
    token = fields.StringField(required=True, unique=True)
    expires_at = fields.DateTimeField(required=True)
    is_revoked = fields.BooleanField(default=False)
    created_at = fields.DateTimeField(default=datetime.now)

    meta = {
        'collection': 'refresh_tokens',
        'indexes': ['user', 'token', 'expires_at']
    }

    def is_valid(self):
        return not self.is_revoked and self.expires_at > datetime.now()
