"""
Provider Index - Static knowledge of what each data provider can answer.

Three tables drive routing:
- PROVIDER_INDEX: one ProviderDescriptor per provider id (capabilities,
  returned fields, trigger keywords, timeout)
- CATEGORY_DEFAULTS: providers to call when no trigger keyword matched
- EXTRAPOLATION_RECIPES: declarative recipes for derived metrics
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..models import ExtrapolationConfig, ExtrapolationType, QuestionCategory


STRUCTURED = "structured"
AI = "ai"
VISION = "vision"

DEFAULT_PROVIDER_TIMEOUT = 10.0


@dataclass(frozen=True)
class ProviderDescriptor:
    """Static table entry for one provider."""
    provider_id: str
    capabilities: Tuple[str, ...]
    returns: Tuple[str, ...]
    trigger_keywords: Tuple[str, ...]
    kind: str = STRUCTURED
    timeout: float = DEFAULT_PROVIDER_TIMEOUT

    def matches(self, lowered_question: str) -> Optional[str]:
        """Return the first trigger keyword contained in the question."""
        for keyword in self.trigger_keywords:
            if keyword in lowered_question:
                return keyword
        return None


def _descriptor(provider_id, capabilities, returns, keywords, kind=STRUCTURED, timeout=DEFAULT_PROVIDER_TIMEOUT):
    return provider_id, ProviderDescriptor(
        provider_id=provider_id,
        capabilities=tuple(capabilities),
        returns=tuple(returns),
        trigger_keywords=tuple(k.lower() for k in keywords),
        kind=kind,
        timeout=timeout,
    )


PROVIDER_INDEX: Dict[str, ProviderDescriptor] = dict([
    # Google Maps platform
    _descriptor(
        "google_places",
        ["nearby_search", "place_details", "text_search"],
        ["business_name", "address", "rating", "reviews", "hours", "phone", "website", "distance"],
        ["nearest", "what is nearby", "restaurants", "grocery", "parks", "distance to",
         "whole foods", "starbucks"],
    ),
    _descriptor(
        "google_routes",
        ["compute_route", "traffic_aware", "commute_comparison"],
        ["duration", "duration_in_traffic", "distance", "toll_info"],
        ["how long to", "commute", "drive to", "traffic", "rush hour", "route to"],
    ),
    _descriptor(
        "google_elevation",
        ["point_elevation", "path_elevation", "driveway_grade"],
        ["elevation_meters", "grade_percent"],
        ["elevation", "hill", "steep driveway", "sports car", "low clearance"],
    ),
    _descriptor(
        "google_airquality",
        ["current_aqi", "pollutants", "health_recommendations"],
        ["aqi", "category", "dominant_pollutant", "recommendations"],
        ["air quality", "pollution", "aqi", "smog"],
    ),
    _descriptor(
        "google_pollen",
        ["pollen_forecast", "allergen_levels"],
        ["tree_pollen", "grass_pollen", "weed_pollen"],
        ["pollen", "allergies", "allergens"],
    ),
    _descriptor(
        "google_solar",
        ["solar_potential", "roof_analysis", "savings_estimate"],
        ["panel_count", "annual_kwh", "savings", "payback_period"],
        ["solar panels", "solar potential", "roof solar"],
    ),

    # Property data
    _descriptor(
        "simplyrets",
        ["search_listings", "get_listing"],
        ["price", "beds", "baths", "sqft", "photos", "description", "agent", "days_on_market"],
        ["listing", "asking price", "photos", "days on market"],
    ),
    _descriptor(
        "estated",
        ["property_data", "valuation", "owner_info", "tax_history"],
        ["avm", "owner_name", "tax_amount", "last_sale_price", "mortgage_info"],
        ["property value", "worth", "owner", "tax", "last sold"],
    ),
    _descriptor(
        "rentcast",
        ["rent_estimate", "rental_comps"],
        ["rent_estimate", "rent_range", "comparable_rentals"],
        ["rent", "rental income", "rental comps"],
    ),
    _descriptor(
        "mashvisor",
        ["investment_analysis", "airbnb_estimate"],
        ["traditional_rent", "airbnb_rent", "occupancy", "cap_rate", "cash_on_cash"],
        ["investment", "airbnb", "cap rate", "cash on cash"],
    ),
    _descriptor(
        "regrid",
        ["parcel_data", "zoning"],
        ["parcel_boundary", "zoning_code", "lot_size", "land_use"],
        ["zoning", "parcel", "lot lines", "adu", "what can i build"],
    ),

    # Neighborhood data
    _descriptor(
        "neighborhoodscout",
        ["crime_grade", "neighborhood_data"],
        ["crime_grade", "violent_crime_rate", "property_crime_rate"],
        ["crime rate", "safe", "crime"],
    ),
    _descriptor(
        "greatschools",
        ["nearby_schools", "school_ratings"],
        ["schools", "ratings", "test_scores"],
        ["school", "education", "district"],
    ),
    _descriptor(
        "census",
        ["demographics", "income"],
        ["population", "median_income", "median_age"],
        ["demographics", "who lives", "median income", "population"],
    ),
    _descriptor(
        "spotcrime",
        ["recent_crimes"],
        ["crime_incidents", "crime_types"],
        ["recent crimes", "crime incidents"],
    ),

    # Environmental data
    _descriptor(
        "fema",
        ["flood_zone"],
        ["flood_zone", "flood_zone_description", "in_floodway"],
        ["flood", "fema", "flood insurance"],
    ),
    _descriptor(
        "howloud",
        ["noise_score"],
        ["soundscore", "traffic_noise", "airport_noise"],
        ["noise", "loud", "quiet", "traffic noise"],
    ),
    _descriptor(
        "usgs",
        ["earthquake_history"],
        ["recent_earthquakes", "magnitudes"],
        ["earthquake", "seismic", "fault"],
    ),
    _descriptor(
        "wildfire",
        ["wildfire_risk"],
        ["risk_index", "risk_category"],
        ["wildfire", "fire risk", "fire zone"],
    ),

    # Financial data
    _descriptor(
        "fred",
        ["mortgage_rates"],
        ["mortgage_30yr", "mortgage_15yr"],
        ["mortgage rate", "interest rate"],
    ),

    # Utilities
    _descriptor(
        "broadband",
        ["internet_providers"],
        ["providers", "max_speeds"],
        ["internet", "wifi", "fiber", "broadband"],
    ),

    # AI web search
    _descriptor(
        "perplexity",
        ["permit_history", "hoa_info", "neighborhood_sentiment", "upcoming_development"],
        ["web_search_results", "citations"],
        ["permit", "hoa", "neighbors say", "reddit", "nextdoor", "sex offender",
         "development", "what is it like"],
        kind=AI,
        timeout=30.0,
    ),

    # AI photo analysis
    _descriptor(
        "gemini_vision",
        ["garage_size", "kitchen_condition", "natural_light", "backyard_privacy"],
        ["visual_analysis", "measurements"],
        ["will my car fit", "garage size", "kitchen updated", "natural light", "backyard private"],
        kind=VISION,
        timeout=60.0,
    ),
])


CATEGORY_DEFAULTS: Dict[QuestionCategory, Tuple[str, ...]] = {
    QuestionCategory.LOCATION_DISTANCE: ("google_places", "google_routes"),
    QuestionCategory.LOCATION_AMENITIES: ("google_places",),
    QuestionCategory.LOCATION_COMMUTE: ("google_routes",),
    QuestionCategory.FINANCIAL_VALUE: ("estated", "simplyrets"),
    QuestionCategory.FINANCIAL_INVESTMENT: ("estated", "rentcast", "mashvisor"),
    QuestionCategory.FINANCIAL_COST: ("estated", "fred", "simplyrets"),
    QuestionCategory.FINANCIAL_MORTGAGE: ("fred",),
    QuestionCategory.ENVIRONMENTAL_RISK: ("fema", "usgs", "wildfire"),
    QuestionCategory.ENVIRONMENTAL_QUALITY: ("howloud", "google_airquality"),
    QuestionCategory.NEIGHBORHOOD_SAFETY: ("neighborhoodscout", "spotcrime"),
    QuestionCategory.NEIGHBORHOOD_VIBE: ("perplexity",),
    QuestionCategory.NEIGHBORHOOD_DEMOGRAPHICS: ("census",),
    QuestionCategory.SCHOOLS: ("greatschools",),
    QuestionCategory.PROPERTY_FEATURES: ("simplyrets",),
    QuestionCategory.PROPERTY_CONDITION: ("gemini_vision",),
    QuestionCategory.PROPERTY_HISTORY: ("perplexity",),
    QuestionCategory.PROPERTY_LEGAL: ("regrid", "perplexity"),
    QuestionCategory.UTILITIES: ("broadband", "google_solar"),
    QuestionCategory.COMPARISON: ("simplyrets", "estated"),
    QuestionCategory.RED_FLAGS: ("fema", "neighborhoodscout", "perplexity", "wildfire", "usgs"),
    QuestionCategory.GENERAL: ("perplexity",),
}


EXTRAPOLATION_RECIPES: Dict[ExtrapolationType, ExtrapolationConfig] = {
    ExtrapolationType.INVESTMENT_ANALYSIS: ExtrapolationConfig(
        type=ExtrapolationType.INVESTMENT_ANALYSIS,
        dataSources=["estated", "rentcast", "mashvisor", "census", "neighborhoodscout"],
        logic="Calculate ROI, cap rate, cash flow. Compare to market averages. Score 1-100.",
    ),
    ExtrapolationType.OVERPRICED_CHECK: ExtrapolationConfig(
        type=ExtrapolationType.OVERPRICED_CHECK,
        dataSources=["estated", "simplyrets"],
        logic="Compare list price to AVM. Calculate price/sqft vs neighborhood.",
    ),
    ExtrapolationType.TRUE_MONTHLY_COST: ExtrapolationConfig(
        type=ExtrapolationType.TRUE_MONTHLY_COST,
        dataSources=["simplyrets", "estated", "fred"],
        logic="Mortgage + tax + insurance + HOA + maintenance.",
    ),
    ExtrapolationType.RED_FLAGS: ExtrapolationConfig(
        type=ExtrapolationType.RED_FLAGS,
        dataSources=["fema", "neighborhoodscout", "usgs", "wildfire", "howloud"],
        logic="Scan all sources for issues. Score severity. Return prioritized list.",
    ),
}


# Categories answered by a recipe. Comparison needs extrapolation but has none.
CATEGORY_RECIPES: Dict[QuestionCategory, ExtrapolationType] = {
    QuestionCategory.FINANCIAL_INVESTMENT: ExtrapolationType.INVESTMENT_ANALYSIS,
    QuestionCategory.FINANCIAL_VALUE: ExtrapolationType.OVERPRICED_CHECK,
    QuestionCategory.FINANCIAL_COST: ExtrapolationType.TRUE_MONTHLY_COST,
    QuestionCategory.RED_FLAGS: ExtrapolationType.RED_FLAGS,
}


def get_descriptor(provider_id: str) -> Optional[ProviderDescriptor]:
    return PROVIDER_INDEX.get(provider_id)


def provider_timeout(provider_id: str) -> float:
    descriptor = PROVIDER_INDEX.get(provider_id)
    return descriptor.timeout if descriptor else DEFAULT_PROVIDER_TIMEOUT


def is_structured(provider_id: str) -> bool:
    descriptor = PROVIDER_INDEX.get(provider_id)
    return descriptor is not None and descriptor.kind == STRUCTURED
