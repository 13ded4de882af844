# models/restaurant.py
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class RestaurantStatus(str, Enum):
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUSPENDED = "suspended"
    ACTIVE = "active"
    INACTIVE = "inactive"


class WorkingStatus(str, Enum):
    ONLINE = "online"
    BUSY = "busy"
    OFFLINE = "offline"


class RestaurantCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=255)
    description: Optional[str] = None
    owner_name: str = Field(..., min_length=3)
    owner_contact: Optional[str] = None
    address: str = Field(..., min_length=1)
    floor: Optional[str] = None
    landmark: Optional[str] = None
    locality: Optional[str] = None
    country: str = Field(..., min_length=2, max_length=3)
    state: Optional[str] = None
    city: Optional[str] = None
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    logo_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    cuisine_types: List[str] = Field(default_factory=lambda: ["Pure Veg", "Vegan"])
    bank_account_holder: Optional[str] = None
    bank_account_number: Optional[str] = None
    bank_ifsc_code: Optional[str] = None
    bank_name: Optional[str] = None
    upi_id: Optional[str] = None
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    open_days: List[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5, 6, 7])
    avg_prep_time_minutes: int = Field(30, ge=0)
    minimum_order_amount: float = Field(0, ge=0)
    offers_delivery: bool = False
    offers_pickup: bool = False


class RestaurantUpdate(BaseModel):
    # country is accepted but never applied
    name: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = None
    owner_name: Optional[str] = Field(None, min_length=3)
    owner_contact: Optional[str] = None
    address: Optional[str] = None
    floor: Optional[str] = None
    landmark: Optional[str] = None
    locality: Optional[str] = None
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    logo_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    cuisine_types: Optional[List[str]] = None
    bank_account_holder: Optional[str] = None
    bank_account_number: Optional[str] = None
    bank_ifsc_code: Optional[str] = None
    bank_name: Optional[str] = None
    upi_id: Optional[str] = None
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    open_days: Optional[List[int]] = None
    avg_prep_time_minutes: Optional[int] = Field(None, ge=0)
    minimum_order_amount: Optional[float] = Field(None, ge=0)
    accepts_orders: Optional[bool] = None
    offers_delivery: Optional[bool] = None
    offers_pickup: Optional[bool] = None


class WorkingStatusUpdate(BaseModel):
    status: WorkingStatus


class RejectPayload(BaseModel):
    reason: str = Field(..., min_length=1)


class RestaurantOut(BaseModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    owner_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    logo_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    cuisine_types: List[str] = Field(default_factory=list)
    working_status: WorkingStatus
    status: RestaurantStatus
    rating: float = 0
    total_reviews: int = 0
    total_orders: int = 0
    avg_prep_time_minutes: int = 30
    minimum_order_amount: float = 0
    offers_delivery: bool = False
    offers_pickup: bool = False
    is_vegetarian_only: bool = True
    accepts_orders: bool = True
    is_orderable: bool = False
    approved_by: Optional[str] = None
    approved_at: Optional[str] = None
    rejection_reason: Optional[str] = None
    rejected_at: Optional[str] = None
    last_active_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class RestaurantPage(BaseModel):
    data: List[RestaurantOut]
    total: int
