"""FastAPI dependencies resolving the caller identity from a bearer token."""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from washbay.core.security import TokenDecodeError, decode_access_token
from washbay.shared.enums import UserRole

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Actor:
    """Authenticated caller: a staff user, or a portal customer bound to a client."""

    subject: str
    role: UserRole
    client_id: str | None = None


def _resolve_actor(credentials: HTTPAuthorizationCredentials | None) -> Actor:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing authentication")
    try:
        payload = decode_access_token(credentials.credentials)
    except TokenDecodeError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    subject = payload.get("sub")
    try:
        role = UserRole(payload.get("role"))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload") from exc
    if not subject:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    return Actor(subject=subject, role=role, client_id=payload.get("client_id"))


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> Actor:
    return _resolve_actor(credentials)


async def require_staff(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.role not in {UserRole.EMPLOYEE, UserRole.ADMIN}:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return actor


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return actor


async def require_customer(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.role != UserRole.CUSTOMER or not actor.client_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return actor
