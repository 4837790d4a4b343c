"""Request authentication for the Ordering API.

Bearer tokens are issued by the auth service; this service only verifies
them and reads the principal from the claims (`sub` or `id`, and `role`).
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from ordering.utils.config import settings

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    id: str
    role: str = "user"

    @property
    def is_operator(self) -> bool:
        return self.role == settings.operator_role


def decode_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, settings.auth_secret_key, algorithms=[settings.auth_algorithm])
    except JWTError:
        return None


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Principal:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    claims = decode_token(credentials.credentials)
    subject = (claims or {}).get("sub") or (claims or {}).get("id")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Principal(id=str(subject), role=str(claims.get("role") or "user"))


def require_operator(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_operator:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Operator access required")
    return principal


def ensure_can_access(principal: Principal, customer_id, allow_operator: bool = True) -> None:
    """Owners may access their own orders; operators may access any when allowed."""
    if str(customer_id) == principal.id:
        return
    if allow_operator and principal.is_operator:
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to access this order")
