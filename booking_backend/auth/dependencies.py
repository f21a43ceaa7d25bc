from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWTError

from booking_backend.auth import jwt_handler
from booking_backend.database import SessionLocal
from booking_backend.models.owner import Owner

security = HTTPBearer()


def get_current_owner(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Owner:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_owner_token(token)
    except PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    email = payload.get("sub")
    if not email:
        raise HTTPException(status_code=401, detail="Invalid token subject")

    db = SessionLocal()
    try:
        owner = db.query(Owner).filter(Owner.email == email.strip().lower()).first()
    finally:
        db.close()
    if owner is None:
        raise HTTPException(status_code=401, detail="Owner not found")
    return owner
