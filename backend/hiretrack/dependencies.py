from fastapi import Depends, Header
from sqlalchemy.orm import Session

from hiretrack.database import get_db
from hiretrack.errors import Unauthorized
from hiretrack.models import User
from hiretrack.services.notifier import Notifier
from hiretrack.services.record_store import RecordStore
from hiretrack.services.session_store import session_store
from hiretrack.services.tenancy import AccessGuard, TenantContext, TenantResolver
from hiretrack.services.transitions import StatusTransitionEngine


async def require_session(authorization: str | None = Header(None)) -> str:
    # One generic message for every failure so callers learn nothing about
    # which part of their identity was rejected.
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthorized()
    token = authorization[7:]
    if session_store.get(token) is None:
        raise Unauthorized()
    session_store.touch(token)
    return token


def get_store(db: Session = Depends(get_db)) -> RecordStore:
    return RecordStore(db)


def get_current_user(
    token: str = Depends(require_session),
    store: RecordStore = Depends(get_store),
) -> User:
    state = session_store.get(token)
    user = store.get_user(state.user_id) if state else None
    if user is None:
        session_store.close(token)
        raise Unauthorized()
    return user


def get_tenant_context(
    token: str = Depends(require_session),
    user: User = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
) -> TenantContext:
    state = session_store.get(token)
    ctx = TenantResolver(store).resolve(user, state.active_tenant_id if state else None)
    session_store.set_active_tenant(token, ctx.tenant_id)
    return ctx


def get_access_guard(
    ctx: TenantContext = Depends(get_tenant_context),
    store: RecordStore = Depends(get_store),
) -> AccessGuard:
    return AccessGuard(store, ctx)


def get_transition_engine(
    guard: AccessGuard = Depends(get_access_guard),
    store: RecordStore = Depends(get_store),
) -> StatusTransitionEngine:
    return StatusTransitionEngine(store, guard, notifier=Notifier(store))
