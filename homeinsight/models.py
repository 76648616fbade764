"""
Request, response and internal data models for the question router.

API-facing models keep the camelCase field names the UI consumes.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


Confidence = Literal["high", "medium", "low"]
DataSource = Literal["live", "mock"]


class QuestionCategory(str, Enum):
    """Semantic category of a property question (exactly one per question)."""
    LOCATION_DISTANCE = "location_distance"            # "How far is Whole Foods?"
    LOCATION_AMENITIES = "location_amenities"          # "What restaurants are nearby?"
    LOCATION_COMMUTE = "location_commute"              # "Commute time to SF?"
    FINANCIAL_VALUE = "financial_value"                # "Is this overpriced?"
    FINANCIAL_INVESTMENT = "financial_investment"      # "Good investment?"
    FINANCIAL_COST = "financial_cost"                  # "True monthly cost?"
    FINANCIAL_MORTGAGE = "financial_mortgage"          # "What's the rate?"
    ENVIRONMENTAL_RISK = "environmental_risk"          # "Flood zone? Fire risk?"
    ENVIRONMENTAL_QUALITY = "environmental_quality"    # "Air quality? Noise?"
    NEIGHBORHOOD_SAFETY = "neighborhood_safety"        # "Is it safe?"
    NEIGHBORHOOD_VIBE = "neighborhood_vibe"            # "What do neighbors say?"
    NEIGHBORHOOD_DEMOGRAPHICS = "neighborhood_demographics"  # "Who lives here?"
    SCHOOLS = "schools"                                # "How are the schools?"
    PROPERTY_FEATURES = "property_features"            # "Does it have a pool?"
    PROPERTY_CONDITION = "property_condition"          # "Is the kitchen updated?"
    PROPERTY_HISTORY = "property_history"              # "Any permit issues?"
    PROPERTY_LEGAL = "property_legal"                  # "What's the zoning?"
    UTILITIES = "utilities"                            # "Internet speeds?"
    COMPARISON = "comparison"                          # "Which house is better?"
    RED_FLAGS = "red_flags"                            # "Any red flags?"
    GENERAL = "general"                                # Catch-all


class HandlerKind(str, Enum):
    """Kinds of handler the fan-out executor can run."""
    DIRECT_API = "DIRECT_API"
    EXTRAPOLATOR = "EXTRAPOLATOR"
    AI_QUERY = "AI_QUERY"
    VISION = "VISION"


class ExtrapolationType(str, Enum):
    INVESTMENT_ANALYSIS = "investment_analysis"
    OVERPRICED_CHECK = "overpriced_check"
    TRUE_MONTHLY_COST = "true_monthly_cost"
    RED_FLAGS = "red_flags"


class PropertyContextInput(BaseModel):
    """Partial property context as received on the wire."""
    model_config = ConfigDict(extra="ignore")

    address: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    zipCode: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    price: Optional[float] = None
    beds: Optional[float] = None
    baths: Optional[float] = None
    sqft: Optional[float] = None
    yearBuilt: Optional[int] = None
    hoaMonthly: Optional[float] = None
    mlsId: Optional[str] = None
    photos: Optional[List[str]] = None
    listingData: Optional[Dict[str, Any]] = None
    cachedData: Optional[Dict[str, Any]] = None


class PropertyContext(BaseModel):
    """The property a question is about.

    Built once per request and shared read-only by every concurrent branch.
    ``cachedData`` holds provider payloads the caller already fetched, keyed
    by provider id; components prefer those over calling the provider.
    """
    model_config = ConfigDict(frozen=True)

    address: str = "1148 Greenbrook Drive, Danville, CA 94526"
    lat: float = 37.8044
    lng: float = -121.9523
    zipCode: str = "94526"
    city: str = "Danville"
    state: str = "CA"
    price: Optional[float] = None
    beds: Optional[float] = None
    baths: Optional[float] = None
    sqft: Optional[float] = None
    yearBuilt: Optional[int] = None
    hoaMonthly: Optional[float] = None
    mlsId: Optional[str] = None
    photos: List[str] = Field(default_factory=list)
    listingData: Dict[str, Any] = Field(default_factory=dict)
    cachedData: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_partial(cls, partial: Optional[PropertyContextInput]) -> "PropertyContext":
        """Fill missing fields with the documented defaults."""
        if partial is None:
            return cls()
        values = {k: v for k, v in partial.model_dump().items() if v is not None}
        return cls(**values)

    def cached(self, provider_id: str) -> Optional[Any]:
        return self.cachedData.get(provider_id)

    @property
    def list_price(self) -> Optional[float]:
        """Known asking price: explicit price, then cached listing, then listing data."""
        if self.price:
            return self.price
        listing = self.cachedData.get("listing")
        if isinstance(listing, dict) and listing.get("listPrice"):
            return float(listing["listPrice"])
        if self.listingData.get("listPrice"):
            return float(self.listingData["listPrice"])
        return None


class ProviderResponse(BaseModel):
    """Envelope every provider client returns."""
    data: Optional[Any] = None
    error: Optional[str] = None
    source: DataSource = "mock"


class HandlerResult(BaseModel):
    """Uniform result every handler kind returns to the fan-out executor."""
    success: bool
    data: Optional[Dict[str, Any]] = None
    source: DataSource = "mock"
    error: Optional[str] = None


class ExtrapolationConfig(BaseModel):
    """Declarative recipe consumed by the extrapolation calculators."""
    model_config = ConfigDict(frozen=True)

    type: ExtrapolationType
    dataSources: List[str]
    logic: str


class Correction(BaseModel):
    """A disagreement between a provider value and the AI cross-check."""
    field: str
    original: Any = None
    corrected: Any = None
    reason: str = ""


class AskSellerButton(BaseModel):
    show: bool = False
    questions: List[str] = Field(default_factory=list)


class FormattedResponse(BaseModel):
    answer: str
    sources: List[str] = Field(default_factory=list)
    confidence: Confidence = "low"
    followUpSuggestions: List[str] = Field(default_factory=list)
    askSellerButton: Optional[AskSellerButton] = None


class ChatRequest(BaseModel):
    question: str
    propertyContext: Optional[PropertyContextInput] = None


class ChatResponse(BaseModel):
    answer: str
    confidence: Confidence
    sources: List[str] = Field(default_factory=list)
    followUpSuggestions: List[str] = Field(default_factory=list)
    responseTime_ms: int = 0
    category: str = QuestionCategory.GENERAL.value
    corrections: Optional[List[Correction]] = None
    askSellerButton: Optional[AskSellerButton] = None


class StreamEvent(BaseModel):
    """One event of the incremental (SSE) variant of a chat response."""
    type: Literal["chunk", "metadata", "done"]
    content: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    mockMode: bool
    services: Dict[str, bool]
