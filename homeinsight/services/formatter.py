"""
Answer Formatter

Renders the merged (and validated) data into a markdown answer for the
question's category, together with source attribution, follow-up
suggestions and the "ask the seller" flag.

Data arrives keyed by provider id (``estated``, ``google_routes``...) or by
handler key (``investment_analysis``, ``red_flags``, ``ai_lookup``,
``vision_analysis``). Every template returns None when its fields are
missing, in which case the category placeholder is used instead.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from ..models import AskSellerButton, Confidence, FormattedResponse, PropertyContext, QuestionCategory

logger = logging.getLogger(__name__)


AI_LOOKUP_KEY = "ai_lookup"
VISION_KEY = "vision_analysis"

FALLBACK_MAX_CHARS = 300
METERS_PER_MILE = 1609.34

SOURCE_LABELS: Dict[str, str] = {
    "google_places": "Google Places",
    "google_routes": "Google Maps",
    "google_elevation": "Google Elevation",
    "google_airquality": "Google Air Quality",
    "google_pollen": "Google Pollen",
    "google_solar": "Google Solar",
    "estated": "Estated",
    "rentcast": "RentCast",
    "mashvisor": "Mashvisor",
    "simplyrets": "MLS Listing",
    "regrid": "Regrid",
    "neighborhoodscout": "NeighborhoodScout",
    "greatschools": "GreatSchools",
    "census": "US Census",
    "spotcrime": "SpotCrime",
    "fema": "FEMA",
    "howloud": "HowLoud",
    "usgs": "USGS",
    "wildfire": "Wildfire Risk Index",
    "fred": "Federal Reserve (FRED)",
    "broadband": "FCC Broadband Map",
    AI_LOOKUP_KEY: "Web Search",
    VISION_KEY: "Photo Analysis",
    "investment_analysis": "Investment Analysis",
    "overpriced_check": "Valuation Analysis",
    "true_monthly_cost": "Cost Analysis",
    "red_flags": "Risk Assessment",
}

# Used when no contributor list is supplied: a payload shape implies its source
SHAPE_LABELS = (
    ("queries", "Web Search"),
    ("metrics", "Investment Analysis"),
    ("flags", "Risk Assessment"),
)

PLACEHOLDERS: Dict[QuestionCategory, str] = {
    QuestionCategory.LOCATION_DISTANCE: "I couldn't find specific distance information. Would you like me to search for a particular destination?",
    QuestionCategory.LOCATION_AMENITIES: "I'm still looking up what's nearby. Is there a particular kind of place you're interested in?",
    QuestionCategory.LOCATION_COMMUTE: "I'm still gathering commute data. Where would you be commuting to?",
    QuestionCategory.FINANCIAL_VALUE: "I need the list price and a market valuation to judge whether this home is fairly priced.",
    QuestionCategory.FINANCIAL_INVESTMENT: "I need more data to complete the investment analysis.",
    QuestionCategory.FINANCIAL_COST: "I need the property price to calculate monthly costs.",
    QuestionCategory.FINANCIAL_MORTGAGE: "I'm still fetching current mortgage rates...",
    QuestionCategory.ENVIRONMENTAL_RISK: "I'm still checking flood, wildfire and earthquake data for this location...",
    QuestionCategory.ENVIRONMENTAL_QUALITY: "I'm still checking noise and air quality for this location...",
    QuestionCategory.NEIGHBORHOOD_SAFETY: "I'll check the crime statistics for this area...",
    QuestionCategory.NEIGHBORHOOD_DEMOGRAPHICS: "I'm still gathering census data for this area...",
    QuestionCategory.SCHOOLS: "Let me look up the schools in this area...",
    QuestionCategory.PROPERTY_FEATURES: "I don't have listing details for that feature yet.",
    QuestionCategory.PROPERTY_LEGAL: "I'm still looking up the parcel and zoning records...",
    QuestionCategory.UTILITIES: "I'm still checking internet and utility options for this address...",
    QuestionCategory.RED_FLAGS: "Let me analyze the property for potential concerns...",
}

GENERIC_PLACEHOLDER = "I'm still gathering information. Could you be more specific about what you'd like to know?"
TOO_MUCH_DATA = "I found quite a bit of information about this property. Could you ask something more specific?"

FOLLOW_UPS: Dict[QuestionCategory, List[str]] = {
    QuestionCategory.LOCATION_DISTANCE: ["What about public transit options?", "How is traffic during rush hour?"],
    QuestionCategory.LOCATION_AMENITIES: ["Are there any parks nearby?", "What about grocery stores?"],
    QuestionCategory.LOCATION_COMMUTE: ["What about the reverse commute?", "Is there a train station nearby?"],
    QuestionCategory.FINANCIAL_VALUE: ["What did similar homes sell for?", "What's the price per square foot?"],
    QuestionCategory.FINANCIAL_INVESTMENT: ["What's the Airbnb potential?", "What are the comparable rents?"],
    QuestionCategory.FINANCIAL_COST: ["What if I put 10% down?", "What about closing costs?"],
    QuestionCategory.FINANCIAL_MORTGAGE: ["What are 15-year rates?", "Should I consider an ARM?"],
    QuestionCategory.ENVIRONMENTAL_RISK: ["What about earthquake insurance?", "Is the home retrofitted?"],
    QuestionCategory.ENVIRONMENTAL_QUALITY: ["How is the air quality year-round?", "Is it on a flight path?"],
    QuestionCategory.NEIGHBORHOOD_SAFETY: ["Are there any sex offenders nearby?", "What types of crime are most common?"],
    QuestionCategory.NEIGHBORHOOD_VIBE: ["Is it family-friendly?", "What do residents say about noise?"],
    QuestionCategory.NEIGHBORHOOD_DEMOGRAPHICS: ["What's the average age?", "Is it a growing area?"],
    QuestionCategory.SCHOOLS: ["What about private schools?", "How are the test scores trending?"],
    QuestionCategory.PROPERTY_FEATURES: ["Does it have a pool?", "How big is the garage?"],
    QuestionCategory.PROPERTY_CONDITION: ["When was the roof replaced?", "How old is the HVAC?"],
    QuestionCategory.PROPERTY_HISTORY: ["Any unpermitted work?", "How many times has it sold?"],
    QuestionCategory.PROPERTY_LEGAL: ["Can I build an ADU?", "What are the setback requirements?"],
    QuestionCategory.UTILITIES: ["Is fiber available?", "What are typical utility costs?"],
    QuestionCategory.COMPARISON: ["Which has better schools?", "Which is a better investment?"],
    QuestionCategory.RED_FLAGS: ["Tell me more about the flood risk", "What about the crime rate?"],
    QuestionCategory.GENERAL: ["What else would you like to know?"],
}

SELLER_CATEGORIES = frozenset({
    QuestionCategory.PROPERTY_FEATURES,
    QuestionCategory.PROPERTY_CONDITION,
    QuestionCategory.PROPERTY_HISTORY,
})

SELLER_QUESTIONS = [
    "When was the roof last replaced?",
    "Are there any known issues with the property?",
    "Have there been any unpermitted modifications?",
]

DEFAULTED_LABELS = {
    "purchasePrice": "purchase price",
    "monthlyRent": "monthly rent",
    "propertyTax": "property tax",
    "neighborhoodScore": "neighborhood score",
    "listPrice": "list price",
    "estimatedValue": "estimated value",
    "valueRange": "valuation range",
    "interestRate": "interest rate",
    "hoa": "HOA dues",
    "floodZone": "flood zone",
    "wildfireRisk": "wildfire risk",
    "seismicActivity": "earthquake activity",
    "noiseLevel": "noise level",
    "crimeGrade": "crime grade",
}

SEVERITY_ICONS = {"high": "🔴", "medium": "🟡", "low": "🟢"}


def format_currency(value: Any) -> str:
    """``1250000`` -> ``$1,250,000``; negative amounts keep their sign."""
    if value is None:
        return "N/A"
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return str(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(round(amount)):,}"


def format_percent(value: Any, digits: int = 2) -> str:
    if value is None:
        return "N/A"
    try:
        return f"{float(value):.{digits}f}%"
    except (TypeError, ValueError):
        return str(value)


def _get(payload: Any, *path: Any) -> Any:
    current = payload
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or len(current) <= key:
                return None
            current = current[key]
        elif isinstance(current, Mapping):
            current = current.get(key)
        else:
            return None
    return current


def _unique(items: Iterable[str]) -> List[str]:
    seen = set()
    ordered = []
    for item in items:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


def _caveat(payload: Mapping[str, Any]) -> str:
    defaulted = payload.get("defaultedInputs") or []
    if not defaulted:
        return ""
    labels = ", ".join(DEFAULTED_LABELS.get(name, name) for name in defaulted)
    return f"\n\n_Estimated using default values for: {labels}._"


class AnswerFormatter:
    """Per-category markdown templates over the merged data map."""

    def format(
        self,
        question: str,
        category: QuestionCategory,
        data: Mapping[str, Any],
        context: PropertyContext,
        contributors: Optional[List[str]] = None,
        confidence: Confidence = "medium",
    ) -> FormattedResponse:
        answer = self.render_answer(category, data, context)
        return FormattedResponse(
            answer=answer,
            sources=self.collect_sources(data, contributors),
            confidence=confidence,
            followUpSuggestions=self.follow_ups(category),
            askSellerButton=self.ask_seller(category, data),
        )

    def render_answer(self, category: QuestionCategory, data: Mapping[str, Any], context: PropertyContext) -> str:
        template = TEMPLATES.get(category)
        if template is not None:
            try:
                answer = template(self, data, context)
            except (TypeError, ValueError, KeyError, AttributeError) as e:
                logger.warning(f"[Formatter] {category.value} template failed on unexpected data: {e}")
                answer = None
            if answer:
                return answer

        # Categories without structured coverage are answered from the lookup handlers
        answer = self._ai_summary(data) or self._vision_summary(data)
        if answer:
            return answer

        if template is not None:
            return PLACEHOLDERS.get(category, GENERIC_PLACEHOLDER)
        return self._fallback(data)

    def _fallback(self, data: Mapping[str, Any]) -> str:
        if not data:
            return GENERIC_PLACEHOLDER
        serialized = json.dumps(data, indent=2, default=str)
        if len(serialized) < FALLBACK_MAX_CHARS:
            return f"Here's what I found:\n\n```json\n{serialized}\n```"
        return TOO_MUCH_DATA

    # ----- Location -----

    def _distance(self, data: Mapping[str, Any], context: PropertyContext) -> Optional[str]:
        route = _get(data, "google_routes", "routes", 0)
        if route:
            return self._route_sentence(route)
        place = _get(data, "google_places", "places", 0)
        if place:
            kind = (_get(place, "types", 0) or "location").replace("_", " ")
            answer = (
                f"The nearest {kind} is **{_get(place, 'displayName', 'text')}** "
                f"at {place.get('formattedAddress')}."
            )
            if place.get("rating") is not None:
                answer += f" It has a {place['rating']} star rating."
            return answer
        return None

    def _route_sentence(self, route: Mapping[str, Any]) -> str:
        seconds = float(str(route.get("duration") or "0").rstrip("s") or 0)
        minutes = round(seconds / 60)
        miles = round((route.get("distanceMeters") or 0) / METERS_PER_MILE, 1)
        return f"It's about {minutes} minutes ({miles} miles) from the property."

    def _amenities(self, data: Mapping[str, Any], context: PropertyContext) -> Optional[str]:
        places = _get(data, "google_places", "places")
        if not places:
            return None
        lines = [f"**Nearby places around {context.address}:**", ""]
        for place in places[:5]:
            line = f"• **{_get(place, 'displayName', 'text')}** - {place.get('formattedAddress')}"
            if place.get("rating") is not None:
                line += f" ({place['rating']}★)"
            lines.append(line)
        return "\n".join(lines)

    def _commute(self, data: Mapping[str, Any], context: PropertyContext) -> Optional[str]:
        route = _get(data, "google_routes", "routes", 0)
        if not route:
            return None
        answer = self._route_sentence(route)
        static = route.get("staticDuration")
        if static:
            free_flow = round(float(str(static).rstrip("s") or 0) / 60)
            answer += f" Without traffic it would take about {free_flow} minutes."
        return answer

    # ----- Financial -----

    def _value(self, data: Mapping[str, Any], context: PropertyContext) -> Optional[str]:
        check = data.get("overpriced_check")
        if not check or not check.get("verdict"):
            return None
        difference = check.get("difference") or {}
        value_range = check.get("valueRange") or {}
        percent = difference.get("percent") or 0
        direction = "above" if percent >= 0 else "below"
        lines = [
            f"**{check['verdict']}** ({check.get('confidence')} confidence)",
            "",
            f"• List Price: {format_currency(check.get('listPrice'))}",
            f"• Estimated Value: {format_currency(check.get('estimatedValue'))}",
            f"• Value Range: {format_currency(value_range.get('low'))} - {format_currency(value_range.get('high'))}",
            f"• Difference: {format_currency(abs(difference.get('amount') or 0))} "
            f"({format_percent(abs(percent), 1)} {direction} estimate)",
        ]
        if check.get("pricePerSqft"):
            lines.append(f"• Price per sq ft: {format_currency(check['pricePerSqft'])}")
        if check.get("recommendation"):
            lines += ["", check["recommendation"]]
        return "\n".join(lines) + _caveat(check)

    def _investment(self, data: Mapping[str, Any], context: PropertyContext) -> Optional[str]:
        analysis = data.get("investment_analysis") or {}
        summary = analysis.get("summary")
        metrics = analysis.get("metrics")
        if not summary or not metrics:
            return None
        answer = (
            f"**Investment Analysis: {summary['verdict']}** (Score: {summary['investmentScore']}/100)\n\n"
            f"• Cap Rate: {format_percent(metrics.get('capRate'))}\n"
            f"• Cash on Cash Return: {format_percent(metrics.get('cashOnCash'))}\n"
            f"• Estimated Monthly Rent: {format_currency(metrics.get('monthlyRent'))}\n"
            f"• Annual Cash Flow: {format_currency(metrics.get('annualCashFlow'))}"
        )
        airbnb = analysis.get("airbnbPotential")
        if airbnb:
            answer += (
                f"\n\nAirbnb Potential: {format_currency(airbnb.get('estimatedRent'))}/month "
                f"at {airbnb.get('occupancy')}% occupancy. Recommended: {airbnb.get('recommendation')}"
            )
        return answer + _caveat(analysis)

    def _cost(self, data: Mapping[str, Any], context: PropertyContext) -> Optional[str]:
        cost = data.get("true_monthly_cost") or {}
        breakdown = cost.get("breakdown")
        if not cost.get("totalMonthly") or not breakdown:
            return None
        assumptions = cost.get("assumptions") or {}
        affordability = cost.get("affordability") or {}
        answer = (
            f"**True Monthly Cost: {format_currency(cost['totalMonthly'])}**\n\n"
            f"• Mortgage: {format_currency(breakdown.get('mortgage'))}\n"
            f"• Property Tax: {format_currency(breakdown.get('propertyTax'))}\n"
            f"• Insurance: {format_currency(breakdown.get('insurance'))}\n"
            f"• HOA: {format_currency(breakdown.get('hoa'))}\n"
            f"• Maintenance: {format_currency(breakdown.get('maintenance'))}\n\n"
            f"Based on {assumptions.get('downPaymentPercent')}% down at {assumptions.get('interestRate')}% interest.\n"
            f"Required income: ~{format_currency(affordability.get('requiredIncome'))}/year"
        )
        return answer + _caveat(cost)

    def _mortgage(self, data: Mapping[str, Any], context: PropertyContext) -> Optional[str]:
        latest = _get(data, "fred", "observations", 0)
        if not latest or latest.get("value") in (None, "."):
            return None
        return (
            f"The average 30-year fixed mortgage rate is **{latest['value']}%** "
            f"(Freddie Mac survey, week of {latest.get('date')})."
        )

    # ----- Environment -----

    def _environmental_risk(self, data: Mapping[str, Any], context: PropertyContext) -> Optional[str]:
        lines = []
        zone = _get(data, "fema", "flood_zone")
        if zone:
            description = _get(data, "fema", "flood_zone_description")
            lines.append(f"• **Flood Zone:** {zone}" + (f" ({description})" if description else ""))
        wildfire = data.get("wildfire")
        if wildfire and wildfire.get("risk_index") is not None:
            lines.append(f"• **Wildfire Risk:** {wildfire.get('risk_category')} (index {wildfire['risk_index']})")
        quakes = _get(data, "usgs", "features")
        if isinstance(quakes, list):
            strongest = max((_get(q, "properties", "mag") or 0 for q in quakes), default=0)
            lines.append(f"• **Earthquakes:** {len(quakes)} recorded nearby in the past year (max magnitude {strongest})")
        if not lines:
            return None
        return "**Environmental Risk:**\n\n" + "\n".join(lines)

    def _environmental_quality(self, data: Mapping[str, Any], context: PropertyContext) -> Optional[str]:
        lines = []
        noise = data.get("howloud")
        if noise and noise.get("soundscore") is not None:
            lines.append(f"• **Soundscore:** {noise['soundscore']}/100 ({noise.get('category')})")
        index = _get(data, "google_airquality", "indexes", 0)
        if index:
            lines.append(f"• **Air Quality:** AQI {index.get('aqi')} - {index.get('category')}")
        if not lines:
            return None
        return "**Environmental Quality:**\n\n" + "\n".join(lines)

    # ----- Neighborhood -----

    def _safety(self, data: Mapping[str, Any], context: PropertyContext) -> Optional[str]:
        crime = _get(data, "neighborhoodscout", "crime")
        if not crime:
            return None
        answer = (
            f"**Safety Grade: {crime.get('overall_grade')}**\n\n"
            f"This neighborhood has a crime rate that is {crime.get('comparison_to_national')}.\n\n"
            f"• Violent Crime Index: {crime.get('violent_crime_index')}/100\n"
            f"• Property Crime Index: {crime.get('property_crime_index')}/100"
        )
        incidents = _get(data, "spotcrime", "crimes")
        if incidents:
            answer += f"\n\n{len(incidents)} incidents were reported nearby recently."
        return answer

    def _demographics(self, data: Mapping[str, Any], context: PropertyContext) -> Optional[str]:
        census = data.get("census")
        if not census:
            return None
        population = census.get("total_population")
        population_text = f"{population:,}" if isinstance(population, (int, float)) else "N/A"
        return (
            f"**Demographics for {context.zipCode}:**\n\n"
            f"• Population: {population_text}\n"
            f"• Median Age: {census.get('median_age', 'N/A')}\n"
            f"• Median Household Income: {format_currency(census.get('median_household_income'))}\n"
            f"• Owner Occupied: {census.get('owner_occupied_pct', 'N/A')}%"
        )

    def _schools(self, data: Mapping[str, Any], context: PropertyContext) -> Optional[str]:
        schools = _get(data, "greatschools", "schools")
        if not schools:
            return None
        answer = "**Nearby Schools:**\n\n"
        for school in schools[:3]:
            answer += f"• **{school.get('name')}** ({school.get('gradeRange')})\n"
            answer += f"  Rating: {school.get('rating')}/10 | {school.get('distance')} miles away\n\n"
        return answer.rstrip()

    # ----- Property -----

    def _features(self, data: Mapping[str, Any], context: PropertyContext) -> Optional[str]:
        vision = self._vision_summary(data)
        if vision:
            return vision
        details = _get(data, "simplyrets", "property")
        if not details:
            return None
        baths = (details.get("bathsFull") or 0) + 0.5 * (details.get("bathsHalf") or 0)
        lines = [
            "**Property Details:**",
            "",
            f"• Bedrooms: {details.get('bedrooms')}",
            f"• Bathrooms: {baths:g}",
            f"• Living Area: {details.get('area'):,} sq ft" if details.get("area") else "• Living Area: N/A",
            f"• Year Built: {details.get('yearBuilt')}",
            f"• Garage: {details.get('garageSpaces') or 0} spaces",
            f"• Pool: {details.get('pool') or 'None'}",
        ]
        return "\n".join(lines)

    def _legal(self, data: Mapping[str, Any], context: PropertyContext) -> Optional[str]:
        parcel = _get(data, "regrid", "parcel", "properties")
        if not parcel:
            return None
        answer = (
            f"**Zoning: {parcel.get('zoning')}**\n\n"
            f"{parcel.get('zoning_description')}\n\n"
            f"• Parcel Number: {parcel.get('parcelnumb')}\n"
            f"• Land Use: {parcel.get('usedesc')}"
        )
        summary = self._ai_summary(data)
        if summary:
            answer += f"\n\n{summary}"
        return answer

    def _utilities(self, data: Mapping[str, Any], context: PropertyContext) -> Optional[str]:
        lines = []
        for provider in _get(data, "broadband", "providers") or []:
            lines.append(
                f"• **{provider.get('provider_name')}** ({provider.get('technology')}): "
                f"up to {provider.get('max_download_mbps')} Mbps down / {provider.get('max_upload_mbps')} Mbps up"
            )
        solar = _get(data, "google_solar", "solarPotential")
        if solar:
            lines.append(
                f"• **Solar:** {solar.get('maxSunshineHoursPerYear')} sunshine hours/year, "
                f"about {format_currency(solar.get('estimatedSavings'))} in estimated savings"
            )
        if not lines:
            return None
        return "**Utilities:**\n\n" + "\n".join(lines)

    # ----- Risk -----

    def _red_flags(self, data: Mapping[str, Any], context: PropertyContext) -> Optional[str]:
        scan = data.get("red_flags") or {}
        flags = scan.get("flags")
        if flags is None:
            return None
        unchecked = scan.get("defaultedInputs") or []
        note = ""
        if unchecked:
            labels = ", ".join(DEFAULTED_LABELS.get(name, name) for name in unchecked)
            note = f"\n\n_Could not check: {labels}._"

        if not flags:
            return (
                "✅ **No significant red flags detected.**\n\n"
                "I checked flood zones, wildfire risk, earthquake activity, noise levels, and crime rates. "
                "Everything looks good!" + note
            )

        answer = f"**Found {len(flags)} potential concerns:**\n\n"
        for flag in flags:
            icon = SEVERITY_ICONS.get(flag.get("severity"), "🟢")
            answer += f"{icon} **{flag.get('issue')}** ({flag.get('category')})\n{flag.get('details')}\n\n"
        answer += f"**Assessment:** {scan.get('overallAssessment')}"
        return answer + note

    # ----- Lookup handlers -----

    def _ai_summary(self, data: Mapping[str, Any]) -> Optional[str]:
        summary = _get(data, AI_LOOKUP_KEY, "summary")
        return summary.strip() if isinstance(summary, str) and summary.strip() else None

    def _vision_summary(self, data: Mapping[str, Any]) -> Optional[str]:
        analysis = _get(data, VISION_KEY, "primaryAnalysis")
        if not analysis:
            return None
        lines = ["**From the listing photos:**", ""]
        for key, value in analysis.items():
            if isinstance(value, Mapping):
                value = ", ".join(
                    f"{name}: {'fits' if _get(detail, 'fits') else 'does not fit'}"
                    if isinstance(detail, Mapping) else f"{name}: {detail}"
                    for name, detail in value.items()
                )
            elif isinstance(value, list):
                value = "; ".join(str(v) for v in value)
            lines.append(f"• {key}: {value}")
        return "\n".join(lines)

    # ----- Metadata -----

    def collect_sources(self, data: Mapping[str, Any], contributors: Optional[List[str]] = None) -> List[str]:
        """Human-readable sources; contributor ids first, key inspection otherwise."""
        labels: List[str] = []
        if contributors is not None:
            for key in contributors:
                labels.append(SOURCE_LABELS.get(key, key))
                payload = data.get(key)
                if isinstance(payload, Mapping):
                    for input_id in payload.get("inputSources") or []:
                        labels.append(SOURCE_LABELS.get(input_id, input_id))
            return _unique(labels)

        for key, payload in data.items():
            if key in SOURCE_LABELS:
                labels.append(SOURCE_LABELS[key])
            if isinstance(payload, Mapping):
                for shape_key, label in SHAPE_LABELS:
                    if shape_key in payload:
                        labels.append(label)
        return _unique(labels)

    def follow_ups(self, category: QuestionCategory) -> List[str]:
        return list(FOLLOW_UPS.get(category, FOLLOW_UPS[QuestionCategory.GENERAL]))

    def ask_seller(self, category: QuestionCategory, data: Mapping[str, Any]) -> AskSellerButton:
        if category in SELLER_CATEGORIES and not data:
            return AskSellerButton(show=True, questions=list(SELLER_QUESTIONS))
        return AskSellerButton(show=False, questions=[])


Template = Callable[[AnswerFormatter, Mapping[str, Any], PropertyContext], Optional[str]]

TEMPLATES: Dict[QuestionCategory, Template] = {
    QuestionCategory.LOCATION_DISTANCE: AnswerFormatter._distance,
    QuestionCategory.LOCATION_AMENITIES: AnswerFormatter._amenities,
    QuestionCategory.LOCATION_COMMUTE: AnswerFormatter._commute,
    QuestionCategory.FINANCIAL_VALUE: AnswerFormatter._value,
    QuestionCategory.FINANCIAL_INVESTMENT: AnswerFormatter._investment,
    QuestionCategory.FINANCIAL_COST: AnswerFormatter._cost,
    QuestionCategory.FINANCIAL_MORTGAGE: AnswerFormatter._mortgage,
    QuestionCategory.ENVIRONMENTAL_RISK: AnswerFormatter._environmental_risk,
    QuestionCategory.ENVIRONMENTAL_QUALITY: AnswerFormatter._environmental_quality,
    QuestionCategory.NEIGHBORHOOD_SAFETY: AnswerFormatter._safety,
    QuestionCategory.NEIGHBORHOOD_DEMOGRAPHICS: AnswerFormatter._demographics,
    QuestionCategory.SCHOOLS: AnswerFormatter._schools,
    QuestionCategory.PROPERTY_FEATURES: AnswerFormatter._features,
    QuestionCategory.PROPERTY_LEGAL: AnswerFormatter._legal,
    QuestionCategory.UTILITIES: AnswerFormatter._utilities,
    QuestionCategory.RED_FLAGS: AnswerFormatter._red_flags,
}
