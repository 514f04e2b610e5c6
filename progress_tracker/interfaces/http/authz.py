from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from ...config import settings

# auto_error=False: без токена отвечаем 401, а не 403
bearer = HTTPBearer(auto_error=False)

def _unauthenticated() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token",
        headers={"WWW-Authenticate": "Bearer"},
    )

def get_claims(creds: HTTPAuthorizationCredentials | None = Depends(bearer)) -> dict:
    if creds is None:
        raise _unauthenticated()
    try:
        payload = jwt.decode(creds.credentials, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError:
        raise _unauthenticated()

def get_user_id(claims: dict = Depends(get_claims)) -> str:
    sub = claims.get("sub")
    if not sub:
        raise _unauthenticated()
    return sub

def require_admin(claims: dict = Depends(get_claims)) -> dict:
    role = claims.get("role", "student")
    if role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin required")
    return claims

def require_repair_capability(claims: dict = Depends(get_claims)) -> dict:
    # отдельная capability, роль admin её не подразумевает
    caps = claims.get("caps") or []
    if settings.REPAIR_CAPABILITY not in caps:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Repair capability required")
    return claims
