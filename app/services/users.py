from datetime import datetime

from pymongo.errors import DuplicateKeyError

from app.core.audit import log_event
from app.core.config import get_settings
from app.core.exceptions import BadRequestError, ConflictError, UnauthorizedError
from app.core.logging import get_logger
from app.core.security import hash_password, verify_password
from app.models.user import User

log = get_logger(__name__)

# Same message for unknown email and wrong password: no account enumeration.
INVALID_CREDENTIALS = "Invalid email or password"


async def signup(name: str, email: str, password: str) -> User:
    if not name or not email or not password:
        raise BadRequestError("Missing required fields")
    email = email.strip().lower()
    if await User.find_one(User.email == email):
        raise ConflictError("Email already registered")
    role = "admin" if email in get_settings().admin_emails else "user"
    user = User(name=name, email=email, password_hash=hash_password(password), role=role)
    try:
        await user.insert()
    except DuplicateKeyError as e:
        raise ConflictError("Email already registered") from e
    log.info("user_created", user_id=str(user.id), role=role)
    await log_event(str(user.id), "user_created", "user", str(user.id), {"email": email})
    return user


async def authenticate(email: str, password: str) -> User:
    if not email or not password:
        raise BadRequestError("Missing credentials")
    user = await User.find_one(User.email == email.strip().lower())
    if not user or not verify_password(password, user.password_hash):
        log.info("login_failed")
        raise UnauthorizedError(INVALID_CREDENTIALS)
    user.last_login_at = datetime.utcnow()
    user.updated_at = datetime.utcnow()
    await user.save()
    log.info("user_login", user_id=str(user.id))
    return user


def session_payload_for_user(user: User) -> dict:
    return {"user_id": str(user.id), "session_version": user.session_version}
