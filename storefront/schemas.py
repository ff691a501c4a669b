"""
Pydantic Schemas for Request/Response Validation

Covers:
- Orders, status timeline and payment confirmations
- Checkout surface (totals and hand-off links)
- Admin listing, build status and ad settings
- Download availability

Author: Bro Bro Foods
Version: 1.0.0
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from storefront.models import OrderStatus


# =============================================================================
# ENUMS
# =============================================================================

class PlateType(str, Enum):
    HALF = "half"
    FULL = "full"


class PaidVia(str, Enum):
    """Payment rail the customer says they used. Display only."""
    GOOGLE_PAY = "Google Pay"
    PHONEPE = "PhonePe"
    PAYTM = "Paytm"
    BHIM = "BHIM UPI"
    OTHER = "Other UPI App"


class PaymentFilter(str, Enum):
    ALL = "all"
    PAID = "paid"
    UNPAID = "unpaid"


class DownloadKind(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


# =============================================================================
# DOMAIN RECORDS
# =============================================================================

class StatusChangeEvent(BaseModel):
    """One entry of an order's status timeline."""
    model_config = ConfigDict(from_attributes=True)

    status: OrderStatus
    changed_at: datetime
    changed_by: str


class PaymentConfirmation(BaseModel):
    """Customer-reported payment receipt. Not verified against any bank."""
    model_config = ConfigDict(from_attributes=True)

    utr: str
    paid_via: str
    paid_at: datetime
    payment_method_id: int


class OrderResponse(BaseModel):
    """Response schema for a single order."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: OrderStatus
    plate_type_id: int
    plate_type_name: str
    price: int
    quantity: int
    total_amount: int
    created_at: datetime
    status_events: List[StatusChangeEvent]
    payment_confirmation: Optional[PaymentConfirmation] = None
    payment_method_id: Optional[int] = None

    @property
    def is_paid(self) -> bool:
        return self.payment_confirmation is not None


class LastBuildStatus(BaseModel):
    """Outcome of the most recent build/deploy run."""
    model_config = ConfigDict(from_attributes=True)

    build_succeeded: bool
    build_output: Optional[str] = None
    app_installation_succeeded: bool
    app_installation_output: Optional[str] = None
    deploy_succeeded: bool
    deploy_output: Optional[str] = None


class LastBuildStatusResponse(BaseModel):
    status: LastBuildStatus
    timestamp: datetime


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class OrderCreate(BaseModel):
    """Request schema for placing an order."""
    plate_type: PlateType = Field(..., examples=["full"])
    # The minimum-order rule is checked by the service so the customer gets
    # the plain-language message instead of a schema error.
    quantity: int = Field(..., examples=[2])


class PaymentConfirmationCreate(BaseModel):
    """UTR submission from the post-order screen."""
    utr: str = Field(..., max_length=100, examples=["412345678901"])
    paid_via: PaidVia = Field(default=PaidVia.GOOGLE_PAY)
    paid_at: Optional[datetime] = Field(None)


class StatusUpdateRequest(BaseModel):
    """Admin request to move an order to any status."""
    status: OrderStatus
    changed_by: Optional[str] = Field(None, max_length=50)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class MenuItem(BaseModel):
    plate_type: PlateType
    plate_type_id: int
    name: str
    price: int
    pieces: int


class MenuResponse(BaseModel):
    items: List[MenuItem]
    min_plates_per_order: int
    minimum_order_message: str
    delivery_charge: int


class CheckoutResponse(BaseModel):
    """Everything the post-order payment screen needs."""
    order_id: int
    items_total: int
    delivery_charge: int
    grand_total: int
    whatsapp_order_link: str
    screenshot_request_link: str
    payment_links: dict[str, str] = Field(default_factory=dict)
    qr_payment_link: Optional[str] = None
    payment_link_message: Optional[str] = None


class OrderCreateResponse(BaseModel):
    """Response after successfully placing an order."""
    success: bool
    message: str
    order: OrderResponse
    checkout: CheckoutResponse


class PaymentConfirmationAccepted(BaseModel):
    """Response after a UTR was attached to an order."""
    success: bool
    message: str
    order: OrderResponse
    payment_confirmation_link: str
    screenshot_request_link: str


class TimelineResponse(BaseModel):
    order_id: int
    events: List[StatusChangeEvent]


class OrderSummary(BaseModel):
    total_orders: int
    paid_orders: int
    pending_orders: int
    total_revenue: int


class AdminOrderListResponse(BaseModel):
    total: int
    summary: OrderSummary
    orders: List[OrderResponse]


class DownloadStatus(BaseModel):
    kind: DownloadKind
    label: str
    version: str
    filename: str
    url: str
    available: bool
    size: Optional[str] = None
    message: Optional[str] = None


# =============================================================================
# CLIENT SETTINGS
# =============================================================================

class AdsSettings(BaseModel):
    """Owner-entered AdSense settings. Ads are off until configured."""
    enabled: bool = False
    adsense_client_id: str = ""
    top_banner_slot_id: str = ""
    bottom_banner_slot_id: str = ""
    enable_on_capacitor: bool = False


class AdsSettingsValidation(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)


class AdsSlots(BaseModel):
    top_banner: str = ""
    bottom_banner: str = ""


class AdsConfig(BaseModel):
    """Ad snippets handed to the page. Empty strings mean "render nothing"."""
    enabled: bool = False
    provider_head_snippet: str = ""
    slots: AdsSlots = Field(default_factory=AdsSlots)


class PromoState(BaseModel):
    dismissed: bool = False


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    storage: str
    timestamp: datetime
