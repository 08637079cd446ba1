"""Lookups for the actors and catalog entries bookings refer to."""

from typing import Optional

from sqlalchemy.orm import Session

from .. import models


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_admin(db: Session, user_id: int) -> Optional[models.User]:
    return (
        db.query(models.User)
        .filter(models.User.id == user_id, models.User.role == models.UserRole.ADMIN)
        .first()
    )


def get_service(db: Session, service_id: int) -> Optional[models.Service]:
    return db.query(models.Service).filter(models.Service.id == service_id).first()


def get_patient(db: Session, patient_id: int) -> Optional[models.Patient]:
    return db.query(models.Patient).filter(models.Patient.id == patient_id).first()


def get_provider(db: Session, provider_id: int) -> Optional[models.Provider]:
    return db.query(models.Provider).filter(models.Provider.id == provider_id).first()


def get_provider_for_update(db: Session, provider_id: int) -> Optional[models.Provider]:
    return (
        db.query(models.Provider)
        .filter(models.Provider.id == provider_id)
        .with_for_update()
        .populate_existing()
        .first()
    )