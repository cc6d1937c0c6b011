# petsynth/api/pets/services.py
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_

from petsynth.core.exceptions import NotFoundError
from petsynth.models import db, Pet, VISIBLE_STATUSES

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def escape_like(term: str) -> str:
    """Escapes LIKE wildcards so user input only ever matches literally (ESCAPE '\\')."""
    return term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def clamp_pagination(limit: Optional[int], offset: Optional[int]) -> Tuple[int, int]:
    limit = DEFAULT_PAGE_SIZE if limit is None else min(max(1, limit), MAX_PAGE_SIZE)
    offset = 0 if offset is None else max(0, offset)
    return limit, offset


class PetService:
    """Catalog reads and creation of published pets."""

    def create_published_pet(self, owner_id: str, draft: Dict[str, Any], commit: bool = True) -> Pet:
        """Persists a validated accept-stage draft as a published pet owned by owner_id."""
        pet = Pet.from_draft(draft, owner_id)
        db.session.add(pet)
        if commit:
            db.session.commit()
        return pet

    def list_pets(self, q: Optional[str] = None, limit: Optional[int] = None,
                  offset: Optional[int] = None) -> Tuple[List[Pet], int, int, int]:
        """
        Visible pets, optionally filtered by a case-insensitive substring match on
        name, species, description and traits. Returns (items, total, limit, offset).
        """
        limit, offset = clamp_pagination(limit, offset)
        query = Pet.query.filter(Pet.status.in_(VISIBLE_STATUSES))

        term = (q or '').strip()
        if term:
            pattern = f"%{escape_like(term)}%"
            query = query.filter(or_(
                Pet.name.ilike(pattern, escape='\\'),
                Pet.species.ilike(pattern, escape='\\'),
                Pet.description.ilike(pattern, escape='\\'),
                Pet.traits_json.ilike(pattern, escape='\\'),
            ))

        total = query.count()
        items = query.order_by(Pet.created_at.desc(), Pet.id).limit(limit).offset(offset).all()
        logging.debug(f"Catalog query q={term!r} returned {len(items)}/{total}")
        return items, total, limit, offset

    def get_visible_pet(self, pet_id: str) -> Pet:
        """Raises NotFoundError for absent pets and pets outside the visible statuses."""
        pet = db.session.get(Pet, pet_id)
        if pet is None or not pet.is_visible:
            raise NotFoundError("Pet not found")
        return pet
