import logging

from sqlalchemy import event
from sqlalchemy.orm.attributes import NO_VALUE

from .. import models

logger = logging.getLogger(__name__)

_registered = False


def _on_status_set(model_name: str):
    def _log(target, value, oldvalue, initiator):  # noqa: ANN001
        if oldvalue is NO_VALUE or oldvalue is None or oldvalue == value:
            return
        logger.info(
            "%s id=%s status %s -> %s",
            model_name,
            getattr(target, "id", None),
            getattr(oldvalue, "value", oldvalue),
            getattr(value, "value", value),
        )

    return _log


def register_status_listeners() -> None:
    """Log every status transition on the lifecycle-bearing models."""
    global _registered
    if _registered:
        return
    for model in (
        models.Booking,
        models.Payment,
        models.BookingRejectionRequest,
        models.ServiceCatalogRequest,
    ):
        event.listen(model.status, "set", _on_status_set(model.__name__))
    _registered = True
