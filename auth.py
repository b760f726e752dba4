# auth.py
import logging
from jose import jwt, JWTError
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import crud
from database import get_db
from errors import UnauthorizedError
from models import User
from schemas import UserResponse
from utils import SECRET_KEY, ALGORITHM, AUDIENCE, ISSUER

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(
            token,
            SECRET_KEY,
            algorithms=[ALGORITHM],
            audience=AUDIENCE,
            issuer=ISSUER,
        )
    except JWTError as e:
        logger.info("Rejected bearer token: %s", e)
        raise UnauthorizedError("Invalid token")
    if not payload.get("sub"):
        raise UnauthorizedError("Token has no subject")
    return payload


def identity_from_claims(claims: dict) -> UserResponse:
    # Providers differ on claim names; accept both OIDC and our own spelling
    return UserResponse(
        id=str(claims["sub"]),
        email=claims.get("email"),
        first_name=claims.get("first_name") or claims.get("given_name"),
        last_name=claims.get("last_name") or claims.get("family_name"),
        profile_image_url=claims.get("profile_image_url") or claims.get("picture"),
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Verify the bearer token and return the caller's (refreshed) user row."""
    if credentials is None:
        raise UnauthorizedError("Unauthorized")
    claims = decode_token(credentials.credentials)
    return crud.upsert_user(db, identity_from_claims(claims))
