# petsynth/models/pet.py
import json
import logging
from enum import Enum
from typing import List, Dict, Any

from petsynth.models.db import db, new_id
from petsynth.utils.datetime_utils import now_ms


class PetStatus(Enum):
    SEED = "seed"            # pre-populated catalog entry, no owner
    PUBLISHED = "published"  # accepted from a generated draft


VISIBLE_STATUSES = (PetStatus.SEED.value, PetStatus.PUBLISHED.value)


class Pet(db.Model):
    """
    A catalog pet. Immutable after creation.
    traits are stored as a JSON array so catalog search can match inside them.
    """
    __tablename__ = 'pets'
    __table_args__ = (
        db.CheckConstraint("status IN ('seed', 'published')", name='ck_pets_status'),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(40))
    species = db.Column(db.String(30))
    traits_json = db.Column(db.Text)
    description = db.Column(db.Text)
    care_instructions = db.Column(db.Text)
    price_cents = db.Column(db.Integer)
    image_url = db.Column(db.Text)
    status = db.Column(db.String(16), nullable=False, default=PetStatus.PUBLISHED.value)
    created_by_user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=True)
    created_at = db.Column(db.BigInteger, nullable=False, default=now_ms)

    @property
    def traits(self) -> List[str]:
        if not self.traits_json:
            return []
        try:
            value = json.loads(self.traits_json)
        except ValueError:
            logging.warning(f"Invalid traits_json for pet {self.id}; returning no traits.")
            return []
        return value if isinstance(value, list) else []

    @traits.setter
    def traits(self, value: List[str]):
        self.traits_json = json.dumps(list(value or []))

    @property
    def is_visible(self) -> bool:
        return self.status in VISIBLE_STATUSES

    @classmethod
    def from_draft(cls, draft: Dict[str, Any], owner_id: str) -> "Pet":
        """Builds a published pet from a validated accept-stage draft."""
        pet = cls(
            name=draft['name'],
            species=draft['species'],
            description=draft['description'],
            care_instructions=draft['care_instructions'],
            price_cents=draft['price_cents'],
            image_url=draft['image_url'],
            status=PetStatus.PUBLISHED.value,
            created_by_user_id=owner_id,
        )
        pet.traits = draft['traits']
        return pet

    def __repr__(self):
        return f'<Pet {self.id} {self.name!r} ({self.status})>'
