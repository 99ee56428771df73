import logging
from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from quickflip.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Tokens are issued by the identity provider in front of this service; we only verify them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

def decode_token(token: str, secret: str, algorithm: str = "HS256"):
    return jwt.decode(token, secret, algorithms=[algorithm])

def get_current_user(token: str = Depends(oauth2_scheme), settings: Settings = Depends(get_settings)) -> str:
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    if not settings.jwt_secret:
        raise HTTPException(status_code=500, detail="JWT_SECRET is not configured")
    try:
        payload = decode_token(token, settings.jwt_secret, settings.jwt_algorithm)
    except JWTError as e:
        logger.info("Rejected bearer token: %s", e)
        raise HTTPException(status_code=401, detail="Invalid token")
    user = payload.get("sub")
    # OAuth state values are signed with the same secret but are not credentials.
    if not user or payload.get("purpose"):
        raise HTTPException(status_code=401, detail="Invalid token")
    return user
