from passlib.context import CryptContext
from passlib.exc import PasswordSizeError

# passlib refuses to hash anything longer than this.
MAX_PASSWORD_LENGTH = 4096

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except PasswordSizeError:
        return False
