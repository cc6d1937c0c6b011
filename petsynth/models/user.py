# petsynth/models/user.py
from petsynth.models.db import db, new_id
from petsynth.utils.datetime_utils import now_ms


class User(db.Model):
    """
    A registered account.
    password_hash is NULL only for accounts provisioned outside the register flow.
    """
    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    username = db.Column(db.String(24), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.BigInteger, nullable=False, default=now_ms)

    def to_public_dict(self) -> dict:
        return {"id": self.id, "username": self.username}

    def __repr__(self):
        return f'<User {self.username}>'
