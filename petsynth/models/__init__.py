# petsynth/models/__init__.py
from .db import db
from .user import User
from .pet import Pet, PetStatus, VISIBLE_STATUSES
from .user_pet import UserPet
from .generation import Generation

__all__ = ['db', 'User', 'Pet', 'PetStatus', 'VISIBLE_STATUSES', 'UserPet', 'Generation']
