from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from exam_backend.database import get_db
from exam_backend.models import User
from exam_backend.auth.jwt import verify_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = verify_token(token)
    if payload is None:
        print(f"❌ Token verification failed for token: {token[:20]}...")
        raise credentials_exception

    user_id = payload.get("sub")
    if user_id is None:
        print("❌ Token payload missing 'sub'")
        raise credentials_exception

    try:
        user_id = int(user_id)
    except (ValueError, TypeError) as e:
        print(f"❌ Failed to convert user_id to int: {user_id}, error: {e}")
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        print(f"❌ User not found in database for id: {user_id}")
        raise credentials_exception

    return user
