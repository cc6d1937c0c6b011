# petsynth/api/auth/services.py
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from petsynth.core.exceptions import AuthenticationError, ConflictError
from petsynth.core.security import hash_password, verify_password
from petsynth.models import db, User


class AuthService:
    """Account creation and credential checks."""

    def create_user(self, username: str, password: str) -> User:
        """Raises ConflictError when the username is taken."""
        if self.find_user_by_username(username) is not None:
            raise ConflictError("Username already taken")

        user = User(username=username, password_hash=hash_password(password))
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            # lost a race with a concurrent registration of the same name
            db.session.rollback()
            raise ConflictError("Username already taken")

        logging.info(f"New user registered: {user.id}")
        return user

    def find_user_by_username(self, username: str) -> Optional[User]:
        return User.query.filter_by(username=username).first()

    def authenticate(self, username: str, password: str) -> User:
        """
        Returns the user whose credentials match.
        Unknown user, missing hash and wrong password all raise the same AuthenticationError.
        """
        user = self.find_user_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid credentials")
        return user
