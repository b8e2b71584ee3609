from email_validator import validate_email, EmailNotValidError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bistro.data.models.user import UserModel
from bistro.repos.user_repo import UserRepo
from bistro.domain.errors import InvalidInputError, ConflictError, NotFoundError, UnauthenticatedError
from bistro.domain.schemas import RegisterIn, LoginIn, UserRead, AuthOut
from bistro.utils.security import hash_password, verify_password, create_access_token
from bistro.utils.settings import ADMIN_EMAILS
from bistro.utils.logging import get_logger

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 8


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def register(self, payload: RegisterIn) -> AuthOut:
        if not payload.name or not payload.email or not payload.password:
            raise InvalidInputError("All fields are required")

        try:
            validate_email(payload.email, check_deliverability=False)
        except EmailNotValidError:
            raise InvalidInputError("Please enter a valid email")

        if len(payload.password) < MIN_PASSWORD_LENGTH:
            raise InvalidInputError(
                f"Please enter a strong password (minimum {MIN_PASSWORD_LENGTH} characters)"
            )

        email = _normalize_email(payload.email)
        if self.repo.get_by_email(email):
            raise ConflictError("User already exists")

        user = UserModel(
            name=payload.name.strip(),
            email=email,
            password_hash=hash_password(payload.password),
            is_admin=email in ADMIN_EMAILS,
        )

        #dwie rownolegle rejestracje - wygrywa unique na email
        try:
            created = self.repo.create_user(user)
        except IntegrityError:
            self.repo.rollback()
            raise ConflictError("User already exists")

        logger.info(f"Zarejestrowano uzytkownika {created.id} (admin={created.is_admin})")
        return self._auth_response(created)

    def login(self, payload: LoginIn) -> AuthOut:
        if not payload.email or not payload.password:
            raise InvalidInputError("Email and password are required")

        user = self.repo.get_by_email(_normalize_email(payload.email))
        if not user:
            raise NotFoundError("User doesn't exist")

        if not verify_password(payload.password, user.password_hash):
            logger.info(f"Nieudane logowanie dla uzytkownika {user.id}")
            raise UnauthenticatedError("Invalid credentials")

        return self._auth_response(user)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return UserRead.model_validate(user)

    def is_admin(self, user_id: int) -> bool:
        user = self.repo.get_user(user_id)
        return bool(user and user.is_admin)

    @staticmethod
    def _auth_response(user: UserModel) -> AuthOut:
        return AuthOut(
            token=create_access_token(user.id),
            user=UserRead.model_validate(user),
        )
