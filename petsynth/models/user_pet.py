# petsynth/models/user_pet.py
from petsynth.models.db import db, new_id
from petsynth.utils.datetime_utils import now_ms


class UserPet(db.Model):
    """A pet in a user's collection. At most one row per (user, pet) pair."""
    __tablename__ = 'user_pets'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'pet_id', name='uq_user_pets_user_pet'),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    pet_id = db.Column(db.String(36), db.ForeignKey('pets.id'), nullable=False)
    added_at = db.Column(db.BigInteger, nullable=False, default=now_ms)

    pet = db.relationship('Pet', lazy='joined')

    def __repr__(self):
        return f'<UserPet user={self.user_id} pet={self.pet_id}>'
