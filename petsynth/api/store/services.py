# petsynth/api/store/services.py
import logging
from typing import List

from sqlalchemy.exc import IntegrityError

from petsynth.api.pets.services import PetService
from petsynth.models import db, Pet, UserPet


class StoreService:
    """A user's personal collection of pets."""

    def __init__(self, pet_service: PetService):
        self.pet_service = pet_service

    def list_collection(self, user_id: str) -> List[Pet]:
        rows = (
            UserPet.query
            .filter_by(user_id=user_id)
            .order_by(UserPet.added_at.desc(), UserPet.id)
            .all()
        )
        return [row.pet for row in rows]

    def add_to_collection(self, user_id: str, pet_id: str, commit: bool = True) -> bool:
        """
        Adds a visible pet to the user's collection.
        Returns True when a new association was created and False when it already
        existed. Raises NotFoundError for a missing or hidden pet.
        """
        self.pet_service.get_visible_pet(pet_id)

        if UserPet.query.filter_by(user_id=user_id, pet_id=pet_id).first() is not None:
            return False

        db.session.add(UserPet(user_id=user_id, pet_id=pet_id))
        if not commit:
            return True
        try:
            db.session.commit()
        except IntegrityError:
            # a concurrent request inserted the same pair first
            db.session.rollback()
            logging.info(f"Pet {pet_id} was already added for user {user_id}")
            return False
        return True

    def remove_from_collection(self, user_id: str, pet_id: str) -> bool:
        """Returns False when the pet was not in the collection."""
        deleted = UserPet.query.filter_by(user_id=user_id, pet_id=pet_id).delete()
        db.session.commit()
        return deleted > 0
