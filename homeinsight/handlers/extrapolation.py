"""
Extrapolation Calculators - derived financial and risk metrics.

Each calculator is a pure function of already-fetched provider payloads
(keyed by provider id) plus the PropertyContext. Missing inputs are
replaced by documented defaults and listed under ``defaultedInputs`` so
the answer can be caveated.

ExtrapolationHandler fetches a recipe's inputs through the provider
registry and runs the matching calculator.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..exceptions import RoutingError
from ..models import ExtrapolationConfig, ExtrapolationType, HandlerResult, PropertyContext
from ..providers.base import ProviderRegistry

logger = logging.getLogger(__name__)


# Investment defaults
DEFAULT_PURCHASE_PRICE = 1_000_000
DEFAULT_MONTHLY_RENT = 4_000
VACANCY_RATE = 0.05
PROPERTY_TAX_RATE = 0.012
INSURANCE_RATE = 0.003
MAINTENANCE_RATE = 0.01
INVESTMENT_LTV = 0.75
INVESTMENT_RATE = 6.5
CLOSING_COST_RATE = 0.03
LOAN_TERM_YEARS = 30
DEFAULT_NEIGHBORHOOD_SCORE = 50

# Overpriced check defaults
DEFAULT_LIST_PRICE = 1_250_000
DEFAULT_AVM = 1_200_000
AVM_BAND = 0.10
OFFER_THRESHOLD_PERCENT = 10

# Monthly cost defaults
DEFAULT_MORTGAGE_RATE = 6.85
COST_DOWN_PAYMENT = 0.20
HOUSING_INCOME_RATIO = 0.28
REFERENCE_SALARY = 100_000

SEVERITY_ORDER = {"high": 0, "medium": 1, "low": 2}


def _get(payload: Any, *path: str) -> Any:
    """Walk nested dicts, returning None on any missing step."""
    current = payload
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _number(value: Any) -> Optional[float]:
    """Positive number or None (strings like "6.85" are accepted)."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def calculate_monthly_mortgage(principal: float, annual_rate: float, years: int) -> float:
    """Standard annuity payment; ``annual_rate`` is a percentage (6.5 for 6.5%)."""
    payments = years * 12
    if principal <= 0 or payments <= 0:
        return 0.0
    monthly_rate = annual_rate / 100 / 12
    if monthly_rate == 0:
        return principal / payments
    growth = (1 + monthly_rate) ** payments
    return principal * (monthly_rate * growth) / (growth - 1)


def calculate_investment_score(cap_rate: float, cash_on_cash: float, neighborhood_score: float) -> float:
    cap_score = max(0.0, min(cap_rate * 10, 100))
    coc_score = max(0.0, min((cash_on_cash + 10) * 5, 100))
    nh_score = max(0.0, min(neighborhood_score, 100))
    return round(cap_score * 0.4 + coc_score * 0.4 + nh_score * 0.2, 2)


def investment_verdict(score: float) -> str:
    if score > 70:
        return "Good Investment"
    if score > 50:
        return "Average"
    return "Below Average"


def calculate_investment_analysis(payloads: Mapping[str, Any], context: PropertyContext) -> Dict[str, Any]:
    """Cap rate, cash-on-cash and a 0-100 score for buying to rent."""
    estated = payloads.get("estated")
    rentcast = payloads.get("rentcast")
    mashvisor = payloads.get("mashvisor")
    defaulted: List[str] = []

    price = _number(context.price) or _number(_get(estated, "valuation", "value"))
    if price is None:
        price = DEFAULT_PURCHASE_PRICE
        defaulted.append("purchasePrice")

    monthly_rent = _number(_get(rentcast, "rent")) or _number(_get(mashvisor, "rental_data", "traditional_rent"))
    if monthly_rent is None:
        monthly_rent = DEFAULT_MONTHLY_RENT
        defaulted.append("monthlyRent")

    annual_tax = _number(_get(estated, "taxes", "amount"))
    if annual_tax is None:
        annual_tax = price * PROPERTY_TAX_RATE
        defaulted.append("propertyTax")

    neighborhood_score = _number(_get(mashvisor, "neighborhood", "investment_score"))
    if neighborhood_score is None:
        neighborhood_score = DEFAULT_NEIGHBORHOOD_SCORE
        defaulted.append("neighborhoodScore")

    annual_rent = monthly_rent * 12
    vacancy_loss = annual_rent * VACANCY_RATE
    effective_gross_income = annual_rent - vacancy_loss
    annual_insurance = price * INSURANCE_RATE
    annual_maintenance = price * MAINTENANCE_RATE
    operating_expenses = annual_tax + annual_insurance + annual_maintenance
    noi = effective_gross_income - operating_expenses

    cap_rate = noi / price * 100
    gross_yield = annual_rent / price * 100

    down_payment = price * (1 - INVESTMENT_LTV)
    closing_costs = price * CLOSING_COST_RATE
    loan_amount = price * INVESTMENT_LTV
    monthly_mortgage = calculate_monthly_mortgage(loan_amount, INVESTMENT_RATE, LOAN_TERM_YEARS)
    annual_debt_service = monthly_mortgage * 12
    annual_cash_flow = noi - annual_debt_service
    cash_on_cash = annual_cash_flow / (down_payment + closing_costs) * 100
    dscr = noi / annual_debt_service if annual_debt_service else None

    score = calculate_investment_score(cap_rate, cash_on_cash, neighborhood_score)

    airbnb = None
    rental_data = _get(mashvisor, "rental_data")
    if isinstance(rental_data, Mapping) and rental_data.get("airbnb_rent"):
        airbnb = {
            "estimatedRent": rental_data.get("airbnb_rent"),
            "occupancy": rental_data.get("airbnb_occupancy"),
            "recommendation": _get(mashvisor, "neighborhood", "optimal_strategy"),
        }

    return {
        "summary": {
            "investmentScore": score,
            "verdict": investment_verdict(score),
        },
        "metrics": {
            "capRate": round(cap_rate, 2),
            "cashOnCash": round(cash_on_cash, 2),
            "grossYield": round(gross_yield, 2),
            "monthlyRent": monthly_rent,
            "noi": round(noi, 2),
            "annualCashFlow": round(annual_cash_flow),
            "monthlyMortgage": round(monthly_mortgage, 2),
            "dscr": round(dscr, 2) if dscr is not None else None,
        },
        "assumptions": {
            "propertyValue": price,
            "downPayment": down_payment,
            "closingCosts": closing_costs,
            "loanToValue": INVESTMENT_LTV,
            "interestRate": INVESTMENT_RATE,
            "loanTerm": LOAN_TERM_YEARS,
            "vacancyRate": VACANCY_RATE,
            "annualExpenses": round(operating_expenses + vacancy_loss),
        },
        "airbnbPotential": airbnb,
        "defaultedInputs": defaulted,
    }


def check_overpriced(payloads: Mapping[str, Any], context: PropertyContext) -> Dict[str, Any]:
    """Compare the asking price against the AVM band."""
    estated = payloads.get("estated")
    listing = payloads.get("simplyrets")
    defaulted: List[str] = []

    list_price = _number(context.list_price) or _number(_get(listing, "listPrice"))
    if list_price is None:
        list_price = DEFAULT_LIST_PRICE
        defaulted.append("listPrice")

    avm = _number(_get(estated, "valuation", "value"))
    if avm is None:
        avm = DEFAULT_AVM
        defaulted.append("estimatedValue")

    avm_low = _number(_get(estated, "valuation", "value_low"))
    avm_high = _number(_get(estated, "valuation", "value_high"))
    if avm_low is None or avm_high is None:
        defaulted.append("valueRange")
    avm_low = avm_low or avm * (1 - AVM_BAND)
    avm_high = avm_high or avm * (1 + AVM_BAND)

    difference = list_price - avm
    percent = difference / avm * 100

    if list_price <= avm_low:
        verdict, confidence = "Potentially Underpriced", "medium"
    elif list_price <= avm:
        verdict, confidence = "Fair Price", "high"
    elif list_price <= avm_high:
        verdict, confidence = "Slightly Above Market", "medium"
    else:
        verdict, confidence = "Overpriced", "high"

    sqft = (
        _number(context.sqft)
        or _number(_get(listing, "property", "area"))
        or _number(_get(estated, "property", "structure", "total_area_sq_ft"))
    )

    recommendation = None
    if percent > OFFER_THRESHOLD_PERCENT:
        recommendation = f"Consider offering ${round(avm):,} based on market value"

    return {
        "verdict": verdict,
        "confidence": confidence,
        "listPrice": list_price,
        "estimatedValue": avm,
        "valueRange": {"low": avm_low, "high": avm_high},
        "difference": {
            "amount": difference,
            "percent": round(percent, 1),
        },
        "pricePerSqft": round(list_price / sqft) if sqft else None,
        "recommendation": recommendation,
        "defaultedInputs": defaulted,
    }


def calculate_true_monthly_cost(payloads: Mapping[str, Any], context: PropertyContext) -> Dict[str, Any]:
    """Mortgage + tax + insurance + HOA + maintenance, per month."""
    estated = payloads.get("estated")
    listing = payloads.get("simplyrets")
    fred = payloads.get("fred")
    defaulted: List[str] = []

    price = (
        _number(context.list_price)
        or _number(_get(listing, "listPrice"))
        or _number(_get(estated, "valuation", "value"))
    )
    if price is None:
        price = DEFAULT_LIST_PRICE
        defaulted.append("purchasePrice")

    observations = _get(fred, "observations")
    rate = None
    if isinstance(observations, list) and observations:
        rate = _number(_get(observations[0], "value"))
    if rate is None:
        rate = DEFAULT_MORTGAGE_RATE
        defaulted.append("interestRate")

    annual_tax = _number(_get(estated, "taxes", "amount"))
    if annual_tax is None:
        annual_tax = price * PROPERTY_TAX_RATE
        defaulted.append("propertyTax")

    hoa = context.hoaMonthly if context.hoaMonthly is not None else 0
    if context.hoaMonthly is None:
        defaulted.append("hoa")

    down_payment = price * COST_DOWN_PAYMENT
    monthly_mortgage = calculate_monthly_mortgage(price - down_payment, rate, LOAN_TERM_YEARS)
    monthly_tax = annual_tax / 12
    monthly_insurance = price * INSURANCE_RATE / 12
    monthly_maintenance = price * MAINTENANCE_RATE / 12

    total = monthly_mortgage + monthly_tax + monthly_insurance + hoa + monthly_maintenance

    return {
        "totalMonthly": round(total),
        "breakdown": {
            "mortgage": round(monthly_mortgage),
            "propertyTax": round(monthly_tax),
            "insurance": round(monthly_insurance),
            "hoa": hoa,
            "maintenance": round(monthly_maintenance),
        },
        "assumptions": {
            "purchasePrice": price,
            "downPayment": down_payment,
            "downPaymentPercent": int(COST_DOWN_PAYMENT * 100),
            "interestRate": rate,
            "loanTerm": LOAN_TERM_YEARS,
        },
        "affordability": {
            "requiredIncome": round(total / HOUSING_INCOME_RATIO * 12),
            "dtiAt100k": round(total / (REFERENCE_SALARY / 12) * 100),
        },
        "defaultedInputs": defaulted,
    }


def _flag(severity: str, category: str, issue: str, details: str) -> Dict[str, str]:
    return {"severity": severity, "category": category, "issue": issue, "details": details}


def scan_red_flags(payloads: Mapping[str, Any], context: PropertyContext) -> Dict[str, Any]:
    """Evaluate flood, wildfire, seismic, noise and crime independently."""
    flags: List[Dict[str, str]] = []
    unchecked: List[str] = []

    flood_zone = _get(payloads.get("fema"), "flood_zone")
    if not flood_zone:
        unchecked.append("floodZone")
    elif str(flood_zone).upper() not in ("X", "C"):
        zone = str(flood_zone).upper()
        flags.append(_flag(
            "high" if zone.startswith(("A", "V")) else "medium",
            "Environmental",
            "Flood Zone",
            f"Property is in FEMA flood zone {zone}. Flood insurance may be required.",
        ))

    wildfire = payloads.get("wildfire")
    risk_index = _number(_get(wildfire, "risk_index"))
    if _get(wildfire, "risk_index") is None:
        unchecked.append("wildfireRisk")
    elif risk_index is not None and risk_index >= 4:
        flags.append(_flag(
            "high",
            "Environmental",
            "Wildfire Risk",
            f"High wildfire risk ({_get(wildfire, 'risk_category') or 'elevated'}). May affect insurance costs.",
        ))

    features = _get(payloads.get("usgs"), "features")
    if not isinstance(features, list):
        unchecked.append("seismicActivity")
    else:
        strong = [f for f in features if (_number(_get(f, "properties", "mag")) or 0) >= 4]
        if len(strong) > 2:
            flags.append(_flag(
                "medium",
                "Environmental",
                "Seismic Activity",
                f"{len(strong)} earthquakes of magnitude 4+ within 100km in the past year.",
            ))

    noise = payloads.get("howloud")
    soundscore = _number(_get(noise, "soundscore"))
    if soundscore is None:
        unchecked.append("noiseLevel")
    elif soundscore < 60:
        flags.append(_flag(
            "low",
            "Quality of Life",
            "Noise Level",
            f"Soundscore of {soundscore:g}/100 indicates a {_get(noise, 'category') or 'noisy'} area.",
        ))

    crime = _get(payloads.get("neighborhoodscout"), "crime")
    grade = _get(crime, "overall_grade")
    if not grade:
        unchecked.append("crimeGrade")
    elif str(grade).upper() in ("D", "F"):
        comparison = _get(crime, "comparison_to_national") or ""
        flags.append(_flag(
            "high",
            "Safety",
            "Crime Rate",
            f"Crime grade of {str(grade).upper()}. {comparison}".strip(),
        ))

    flags.sort(key=lambda f: SEVERITY_ORDER[f["severity"]])

    high = sum(1 for f in flags if f["severity"] == "high")
    medium = sum(1 for f in flags if f["severity"] == "medium")
    low = sum(1 for f in flags if f["severity"] == "low")

    if high > 0:
        assessment = "Significant concerns found - investigate further"
    elif len(flags) > 3:
        assessment = "Several minor concerns - review carefully"
    else:
        assessment = "No major red flags detected"

    return {
        "totalFlags": len(flags),
        "highSeverity": high,
        "mediumSeverity": medium,
        "lowSeverity": low,
        "flags": flags,
        "overallAssessment": assessment,
        "defaultedInputs": unchecked,
    }


Calculator = Callable[[Mapping[str, Any], PropertyContext], Dict[str, Any]]

CALCULATORS: Dict[ExtrapolationType, Calculator] = {
    ExtrapolationType.INVESTMENT_ANALYSIS: calculate_investment_analysis,
    ExtrapolationType.OVERPRICED_CHECK: check_overpriced,
    ExtrapolationType.TRUE_MONTHLY_COST: calculate_true_monthly_cost,
    ExtrapolationType.RED_FLAGS: scan_red_flags,
}


class ExtrapolationHandler:
    """Fetches a recipe's inputs concurrently and runs its calculator."""

    def __init__(self, registry: ProviderRegistry):
        self.registry = registry

    async def run(self, recipe: ExtrapolationConfig, context: PropertyContext) -> HandlerResult:
        calculator = CALCULATORS.get(recipe.type)
        if calculator is None:
            raise RoutingError(f"Unknown extrapolation type: {recipe.type}")

        provider_ids = [pid for pid in recipe.dataSources if pid in self.registry]
        responses = await asyncio.gather(
            *(self.registry.get(pid).request(context) for pid in provider_ids),
            return_exceptions=True,
        )

        payloads: Dict[str, Any] = {}
        sources: List[str] = []
        any_live = False
        for provider_id, response in zip(provider_ids, responses):
            if isinstance(response, BaseException):
                logger.warning(f"[{recipe.type.value}] input {provider_id} failed: {response}")
                continue
            if response.data is None:
                continue
            payloads[provider_id] = response.data
            sources.append(provider_id)
            any_live = any_live or response.source == "live"

        data = calculator(payloads, context)
        data["inputSources"] = sources
        return HandlerResult(success=True, data=data, source="live" if any_live else "mock")
