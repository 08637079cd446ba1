from sqlalchemy.orm import Session

from .. import models


def get_payment(db: Session, payment_id: int) -> models.Payment | None:
    return db.query(models.Payment).filter(models.Payment.id == payment_id).first()


def get_payment_for_update(db: Session, payment_id: int) -> models.Payment | None:
    return (
        db.query(models.Payment)
        .filter(models.Payment.id == payment_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def get_payment_by_booking(db: Session, booking_id: int) -> models.Payment | None:
    return db.query(models.Payment).filter(models.Payment.booking_id == int(booking_id)).first()