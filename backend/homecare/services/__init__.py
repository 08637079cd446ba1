from .booking_lifecycle import BookingLifecycle, CancellationResult
from .catalog_requests import CatalogRequestWorkflow
from .gateway import DummyPaymentGateway, GatewayOutcome, GatewayResult, PaymentGateway, get_gateway
from .notifier import LoggingNotifier, EmailNotifier, NotificationEvent, Notifier, get_notifier
from .payments import PaymentCoordinator
from .privacy import Disclosure, disclose, project_booking
from .provider_assignment import ProviderAssignment
from .refunds import refund_amount
from .rejection_requests import RejectionRequestWorkflow
