from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from .. import crud, models
from ..core.config import settings
from ..database import get_db
from ..models import UserRole
from ..services import (
    BookingLifecycle,
    CatalogRequestWorkflow,
    Notifier,
    PaymentCoordinator,
    ProviderAssignment,
    RejectionRequestWorkflow,
    get_notifier,
)

# Tokens are issued by the auth service; this API only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> models.User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise credentials_exception
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        subject = payload.get("sub")
        if subject is None:
            raise credentials_exception
        user_id = int(subject)
    except (JWTError, ValueError):
        raise credentials_exception
    user = crud.crud_directory.get_user(db, user_id)
    if user is None or not user.is_active:
        raise credentials_exception
    return user


def _require_role(user: models.User, role: UserRole) -> models.User:
    if user.role != role:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"User is not a {role.value}.",
        )
    return user


def get_current_customer(current_user: models.User = Depends(get_current_user)) -> models.User:
    return _require_role(current_user, UserRole.CUSTOMER)


def get_current_admin(current_user: models.User = Depends(get_current_user)) -> models.User:
    return _require_role(current_user, UserRole.ADMIN)


def get_current_provider(current_user: models.User = Depends(get_current_user)) -> models.Provider:
    """Return the provider profile of the authenticated provider user."""
    _require_role(current_user, UserRole.PROVIDER)
    if current_user.provider_profile is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Provider profile does not exist.",
        )
    return current_user.provider_profile


# Service wiring. Tests swap these through app.dependency_overrides.

@lru_cache
def get_notifier_service() -> Notifier:
    return get_notifier()


def get_payment_coordinator(notifier: Notifier = Depends(get_notifier_service)) -> PaymentCoordinator:
    return PaymentCoordinator(notifier=notifier)


def get_booking_lifecycle(
    payments: PaymentCoordinator = Depends(get_payment_coordinator),
    notifier: Notifier = Depends(get_notifier_service),
) -> BookingLifecycle:
    return BookingLifecycle(payments=payments, notifier=notifier)


def get_provider_assignment(notifier: Notifier = Depends(get_notifier_service)) -> ProviderAssignment:
    return ProviderAssignment(notifier=notifier)


def get_rejection_workflow(
    assignment: ProviderAssignment = Depends(get_provider_assignment),
    notifier: Notifier = Depends(get_notifier_service),
) -> RejectionRequestWorkflow:
    return RejectionRequestWorkflow(assignment=assignment, notifier=notifier)


def get_catalog_workflow(notifier: Notifier = Depends(get_notifier_service)) -> CatalogRequestWorkflow:
    return CatalogRequestWorkflow(notifier=notifier)
