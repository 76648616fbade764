"""Static mock payloads, one per provider id.

Served when a provider is not live, and as the fallback when a live call
fails. Shapes follow what each provider's API returns.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Optional


MOCK_PAYLOADS: Dict[str, Any] = {
    "google_places": {
        "places": [
            {
                "displayName": {"text": "Whole Foods Market"},
                "formattedAddress": "100 Sunset Dr, San Ramon, CA 94583",
                "rating": 4.3,
                "types": ["grocery_store", "food", "store"],
            },
            {
                "displayName": {"text": "Safeway"},
                "formattedAddress": "800 Sycamore Valley Rd W, Danville, CA 94526",
                "rating": 4.0,
                "types": ["grocery_store", "supermarket"],
            },
        ],
    },
    "google_routes": {
        "routes": [
            {"duration": "1845s", "staticDuration": "1620s", "distanceMeters": 15200},
        ],
    },
    "google_elevation": {
        "results": [
            {"elevation": 112.4, "location": {"lat": 37.8044, "lng": -121.9523}, "resolution": 4.77},
        ],
        "status": "OK",
    },
    "google_airquality": {
        "indexes": [
            {
                "code": "uaqi",
                "displayName": "Universal AQI",
                "aqi": 72,
                "category": "Good air quality",
                "dominantPollutant": "o3",
            },
        ],
        "healthRecommendations": {
            "generalPopulation": "With this level of air quality, you have no limitations.",
        },
    },
    "google_pollen": {
        "dailyInfo": [
            {
                "date": {"year": 2024, "month": 12, "day": 26},
                "pollenTypeInfo": [
                    {"code": "TREE", "displayName": "Tree", "indexInfo": {"value": 2, "category": "Low"}},
                    {"code": "GRASS", "displayName": "Grass", "indexInfo": {"value": 1, "category": "Very Low"}},
                    {"code": "WEED", "displayName": "Weed", "indexInfo": {"value": 1, "category": "Very Low"}},
                ],
            },
        ],
    },
    "google_solar": {
        "solarPotential": {
            "maxArrayPanelsCount": 38,
            "maxSunshineHoursPerYear": 1820,
            "yearlyEnergyDcKwh": 11400,
            "estimatedSavings": 28000,
            "paybackYears": 7.5,
        },
    },
    "simplyrets": {
        "mlsId": 1005192,
        "listPrice": 1250000,
        "listDate": "2024-11-02T00:00:00Z",
        "daysOnMarket": 54,
        "address": {"full": "1148 Greenbrook Drive", "city": "Danville", "state": "CA", "postalCode": "94526"},
        "property": {
            "bedrooms": 4,
            "bathsFull": 2,
            "bathsHalf": 1,
            "area": 2850,
            "yearBuilt": 1978,
            "garageSpaces": 2,
            "pool": "None",
            "style": "Traditional",
        },
        "photos": [
            "https://photos.example.com/1148-greenbrook/front.jpg",
            "https://photos.example.com/1148-greenbrook/kitchen.jpg",
        ],
        "remarks": "Updated single-story home on a quiet court near top-rated schools.",
    },
    "estated": {
        "property": {
            "structure": {"year_built": 1978, "beds_count": 4, "baths": 2.5, "total_area_sq_ft": 2850},
            "lot": {"lot_size_sq_ft": 10890, "lot_size_acres": 0.25},
        },
        "valuation": {"value": 1285000, "value_low": 1200000, "value_high": 1370000, "date": "2024-12-01"},
        "taxes": {"year": 2024, "amount": 14500},
        "deeds": [{"document_type": "Grant Deed", "recording_date": "2015-06-12", "sale_price": 875000}],
        "mortgages": [{"amount": 700000, "lender_name": "Wells Fargo", "interest_rate": 3.75}],
        "owner": {"name": "Greenbrook Family Trust"},
    },
    "rentcast": {
        "rent": 4200,
        "rentRangeLow": 3800,
        "rentRangeHigh": 4600,
        "comparables": [
            {"formattedAddress": "1120 Greenbrook Dr, Danville, CA 94526", "price": 4100, "bedrooms": 4, "distance": 0.2},
            {"formattedAddress": "210 Sonora Ave, Danville, CA 94526", "price": 4350, "bedrooms": 4, "distance": 0.6},
        ],
    },
    "mashvisor": {
        "rental_data": {"traditional_rent": 4200, "airbnb_rent": 6500, "airbnb_occupancy": 72},
        "investment_data": {"traditional_cap_rate": 2.4, "airbnb_cap_rate": 3.6, "cash_on_cash": -8.1},
        "neighborhood": {"investment_score": 78, "optimal_strategy": "Traditional"},
    },
    "regrid": {
        "parcel": {
            "properties": {
                "parcelnumb": "202-110-015",
                "zoning": "R-1-10",
                "zoning_description": "Single Family Residential, 10,000 sq ft minimum lot",
                "ll_gissqft": 10890,
                "usedesc": "Single Family Residential",
            },
        },
    },
    "neighborhoodscout": {
        "crime": {
            "overall_grade": "A",
            "violent_crime_index": 12,
            "property_crime_index": 18,
            "comparison_to_national": "65% lower than national average",
        },
    },
    "greatschools": {
        "schools": [
            {"name": "Greenbrook Elementary", "gradeRange": "K-5", "rating": 9, "distance": 0.5},
            {"name": "Danville Middle School", "gradeRange": "6-8", "rating": 8, "distance": 1.2},
            {"name": "Monte Vista High School", "gradeRange": "9-12", "rating": 9, "distance": 2.1},
        ],
    },
    "census": {
        "total_population": 45000,
        "median_age": 42,
        "median_household_income": 175000,
        "owner_occupied_pct": 82,
        "bachelors_or_higher_pct": 71,
    },
    "spotcrime": {
        "crimes": [
            {"id": "sc-1", "type": "Theft", "date": "2024-12-18", "address": "Sycamore Valley Rd", "description": "Package theft"},
            {"id": "sc-2", "type": "Vandalism", "date": "2024-12-09", "address": "Camino Tassajara", "description": "Graffiti"},
        ],
    },
    "fema": {
        "flood_zone": "X",
        "flood_zone_description": "Area of minimal flood hazard",
        "in_floodway": False,
    },
    "howloud": {
        "soundscore": 78,
        "traffic_score": 72,
        "airport_score": 95,
        "category": "Quiet",
    },
    "usgs": {
        "features": [
            {"properties": {"mag": 2.8, "place": "5 km NE of Danville, CA", "time": 1731024000000}},
            {"properties": {"mag": 3.2, "place": "8 km S of San Ramon, CA", "time": 1724112000000}},
        ],
    },
    "wildfire": {
        "risk_index": 2,
        "risk_category": "Low",
    },
    "fred": {
        "series_id": "MORTGAGE30US",
        "observations": [{"date": "2024-12-26", "value": "6.85"}],
    },
    "broadband": {
        "providers": [
            {"provider_name": "AT&T Fiber", "technology": "Fiber", "max_download_mbps": 5000, "max_upload_mbps": 5000},
            {"provider_name": "Xfinity", "technology": "Cable", "max_download_mbps": 1200, "max_upload_mbps": 35},
        ],
    },
}


MOCK_AI_CONTENT = (
    "Danville is a quiet, affluent suburb in the San Ramon Valley known for its small-town "
    "downtown, highly rated schools and easy access to hiking on Mount Diablo and the Iron Horse "
    "Trail. Residents on Reddit and Nextdoor describe the Greenbrook area as family-friendly and "
    "safe, with friendly neighbors and well-kept streets. Common complaints are the high cost of "
    "living, limited nightlife and traffic on I-680 during rush hour."
)

MOCK_AI_CITATIONS = [
    "https://www.reddit.com/r/bayarea/",
    "https://www.danville.ca.gov/",
]


VISION_ANALYSES: Dict[str, Dict[str, Any]] = {
    "garageSize": {
        "type": "2-car",
        "widthFt": 18,
        "depthFt": 20,
        "heightFt": 9,
        "usableWidthFt": 16,
        "canFit": {
            "Tesla Model 3": {"fits": True, "clearance": "3.5 ft on each side"},
            "Tesla Model X": {"fits": True, "clearance": "2.8 ft on each side"},
            "Ford F-150": {"fits": True, "clearance": "2.2 ft on each side"},
        },
        "notes": "Standard 2-car garage with some storage along walls.",
    },
    "kitchenCondition": {
        "condition": "good",
        "cabinetStyle": "Shaker",
        "countertopMaterial": "Granite",
        "applianceQuality": "standard",
        "estimatedAge": "10-15 years",
        "issues": ["Minor wear on cabinet hardware"],
        "updateRecommendation": "Cosmetic refresh would modernize the space",
    },
    "naturalLight": {
        "windowCount": 3,
        "windowSize": "large",
        "lightQuality": "bright",
        "estimatedDirection": "South-facing",
        "obstructions": "None visible",
        "score": 85,
    },
    "backyardPrivacy": {
        "privacyLevel": "high",
        "fencing": "6ft wood fence on all sides",
        "naturalScreening": "Mature trees along back",
        "neighborVisibility": "Minimal - only upper floors visible",
        "usableAreaSqFt": 3500,
    },
    "overallCondition": {
        "rating": 7.5,
        "issues": ["Some wear on flooring", "Paint touch-ups needed"],
        "finishQuality": "Mid-range",
        "estimatedFinishAge": "10-15 years",
        "stagingQuality": "Well staged",
        "recommendation": "Move-in ready with cosmetic updates optional",
    },
}


def get_mock_payload(provider_id: str) -> Optional[Any]:
    """Return a private copy of the mock payload for ``provider_id``."""
    payload = MOCK_PAYLOADS.get(provider_id)
    return copy.deepcopy(payload) if payload is not None else None


def get_vision_analysis(prompt: str) -> Dict[str, Any]:
    return copy.deepcopy(VISION_ANALYSES.get(prompt, VISION_ANALYSES["overallCondition"]))
