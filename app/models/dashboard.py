from enum import Enum
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

class Temporal(str, Enum):
    UPCOMING = "upcoming"
    PAST = "past"

class Notice(BaseModel):
    """User-visible notification produced when a sync fails."""
    title: str
    description: str
    variant: Literal["default", "destructive"] = "destructive"

# --- Display rows ---

class VehicleView(BaseModel):
    registration: str
    make_model: str = ""
    type_category: Optional[str] = None

class ServiceView(BaseModel):
    name: str
    price: str
    addons: str = ""

class BillingView(BaseModel):
    total: str
    deposit: Optional[str] = None
    remaining: Optional[str] = None

class BookingView(BaseModel):
    id: str
    customer_name: str
    customer_email: str
    contact: str
    vehicle: VehicleView
    service: ServiceView
    date: str
    time: str
    payment_status: Optional[Literal["Confirmed", "Pending"]] = None
    billing: BillingView
    created: str
    loyalty_reward: bool = False
    status: Temporal

class DashboardSnapshot(BaseModel):
    variant: str
    loading: bool = False
    total: int = 0
    upcoming_count: int = 0
    past_count: int = 0
    upcoming: List[BookingView] = Field(default_factory=list)
    past: List[BookingView] = Field(default_factory=list)
    notices: List[Notice] = Field(default_factory=list)
