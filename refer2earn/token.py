# refer2earn/token.py
from datetime import datetime, timedelta, timezone
import jwt
from .config import settings
from .errors import AuthenticationError

def create_session_token(user_id: int) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)
    payload = {"sub": str(user_id), "iat": int(now.timestamp()), "exp": int(exp.timestamp())}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_session_token(token: str) -> int:
    """Return the user id carried by a session token, or raise AuthenticationError."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        raise AuthenticationError("Could not validate credentials")
    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise AuthenticationError("Could not validate credentials")
    return int(subject)
