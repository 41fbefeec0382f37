#--- START OF FILE: src/marketdesk/interfaces/api/routers/auth.py ---
from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from marketdesk.domain.entities import UserRole
from marketdesk.domain.errors import Conflict, Unauthorized
from marketdesk.infrastructure.db.base import get_session
from marketdesk.infrastructure.db.repository import UserRepository
from marketdesk.infrastructure.db.uow import session_scope
from marketdesk.interfaces.api.deps import get_auth_verifier
from marketdesk.interfaces.api.schemas import RefreshIn, RegisterIn, Token, UserOut, dump, envelope
from marketdesk.interfaces.api.security import auth
from marketdesk.interfaces.api.security.verifier import AuthVerifier

router = APIRouter(prefix="/auth", tags=["Authentication"])

def _issue(user_id: str, role: UserRole) -> Token:
    return Token(
        access_token=auth.create_access_token(subject=user_id, role=role),
        refresh_token=auth.create_refresh_token(subject=user_id),
    )

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register_user(user_in: RegisterIn):
    """
    Customer sign-up. Admins are created with `python -m marketdesk.create_admin`.
    A duplicate email that slips past the lookup fails on the unique index as Conflict.
    """
    with session_scope() as session:
        users = UserRepository(session)
        if users.find_by_email(user_in.email):
            raise Conflict("Email already registered")
        user = users.add(
            email=user_in.email,
            password_hash=auth.hash_password(user_in.password),
            role=UserRole.CUSTOMER,
            first_name=user_in.first_name,
            last_name=user_in.last_name,
        )
        user_out = dump(UserOut.model_validate(user))
    token = _issue(user.id, user.role)
    return envelope({"user": user_out, **token.model_dump()}, "User registered")


@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_session)
):
    """
    Password login with the email as `username`. Returns bare OAuth2 token fields.
    """
    user = UserRepository(db).find_by_email(form_data.username)
    if not user or not user.is_active or not auth.verify_password(form_data.password, user.password_hash):
        raise Unauthorized("Incorrect email or password")
    return _issue(user.id, user.role)


@router.post("/refresh", response_model=Token)
def refresh_access_token(body: RefreshIn, verifier: AuthVerifier = Depends(get_auth_verifier)):
    """
    Trade a refresh token for a new token pair. The user must still be active;
    the role in the new access token is read from the store.
    """
    principal = verifier.verify(body.refresh_token, token_type=auth.REFRESH_TOKEN_TYPE)
    return _issue(principal.user_id, principal.role)
#--- END OF FILE ---
