from .crud_booking import booking, UnassignedBookings
from . import crud_directory
from . import crud_request
from . import crud_payment
