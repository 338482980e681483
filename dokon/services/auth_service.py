# dokon/services/auth_service.py
from passlib.context import CryptContext

from dokon.domain.schemas import LoginOut, UserCreate
from dokon.repos.storage import Storage
from dokon.utils.logging import get_logger
from dokon.utils.settings import ADMIN_PASSWORD, ADMIN_USERNAME

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


class AuthService:
    def __init__(self, storage: Storage):
        self.storage = storage

    def ensure_admin(self, username: str = ADMIN_USERNAME, password: str = ADMIN_PASSWORD):
        """Create the admin account once; an existing one is left alone."""
        if self.storage.get_user_by_username(username):
            return
        self.storage.create_user(UserCreate(username=username, password=hash_password(password), role="admin"))
        logger.info(f"Admin user {username} created")

    def login(self, username: str, password: str) -> LoginOut:
        user = self.storage.get_user_by_username(username)
        if not user or not verify_password(password, user.password):
            logger.warning(f"Failed login for {username}")
            raise PermissionError("Invalid credentials")
        return LoginOut(success=True, username=user.username, role=user.role)
