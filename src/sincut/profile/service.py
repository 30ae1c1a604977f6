"""Profile service: editable profile fields and preset avatars."""

from datetime import datetime

from sincut.auth.models import UserAccount
from sincut.errors import ConflictError, NotFoundError, ValidationError
from sincut.logging_config import get_logger
from sincut.storage.db import db

logger = get_logger(__name__)

ALLOWED_AVATARS = (
    "dog.png",
    "cat.png",
    "man.png",
    "woman.png",
    "anime_boy.png",
    "anime_girl.png",
    "football.png",
    "avatar_1.png",
    "avatar_2.png",
    "avatar_3.png",
)

BIO_MAX_LENGTH = 200


class ProfileService:
    """Service for reading and updating user profiles."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def get_profile(self, user_id: int) -> UserAccount:
        with db.session() as session:
            user = session.get(UserAccount, user_id)
            if not user:
                raise NotFoundError("User not found")
            return user

    def update_profile(
        self,
        user_id: int,
        name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        bio: str | None = None,
    ) -> UserAccount:
        """Update profile fields; ``None`` leaves a field unchanged.

        Raises:
            NotFoundError: Unknown user
            ConflictError: Email belongs to another account
            ValidationError: Bio too long or empty email
        """
        with db.session() as session:
            user = session.get(UserAccount, user_id)
            if not user:
                raise NotFoundError("User not found")

            if email is not None:
                email = email.strip().lower()
                if not email:
                    raise ValidationError("Email cannot be empty")
                taken = session.query(UserAccount.id).filter(
                    UserAccount.email == email,
                    UserAccount.id != user_id,
                ).first()
                if taken:
                    raise ConflictError("Email already in use")
                user.email = email

            if bio is not None and len(bio) > BIO_MAX_LENGTH:
                raise ValidationError(f"Bio must be at most {BIO_MAX_LENGTH} characters")

            updates = {"name": name, "phone": phone, "bio": bio}
            for field, value in updates.items():
                if value is not None:
                    setattr(user, field, value)

            user.updated_at = datetime.utcnow()
            session.commit()
            session.refresh(user)

            self.logger.info(
                "profile_updated",
                user_id=user_id,
                fields=[f for f, v in {**updates, "email": email}.items() if v is not None],
            )
            return user

    def update_avatar(self, user_id: int, profile_image: str | None) -> UserAccount:
        """Select one of the preset avatars.

        Raises:
            ValidationError: Image is not a known preset
        """
        if profile_image not in ALLOWED_AVATARS:
            raise ValidationError("Invalid avatar name")

        with db.session() as session:
            user = session.get(UserAccount, user_id)
            if not user:
                raise NotFoundError("User not found")

            user.profile_image = profile_image
            user.updated_at = datetime.utcnow()
            session.commit()
            session.refresh(user)

            self.logger.info("avatar_updated", user_id=user_id, image=profile_image)
            return user


# Singleton instance
profile_service = ProfileService()
