"""
Provider Selector Tests

Run with: pytest homeinsight/routing/tests/ -v
"""

import dataclasses
import itertools

from ...models import ExtrapolationType, HandlerKind, PropertyContext, QuestionCategory
from ..provider_index import CATEGORY_DEFAULTS, EXTRAPOLATION_RECIPES, PROVIDER_INDEX, provider_timeout
from ..provider_selector import (
    build_ai_queries,
    build_routing_plan,
    choose_vision_prompt,
    describe_plan,
    needs_ai_fallback,
    needs_extrapolation,
    needs_vision,
    recipe_for,
    select_providers,
)


PHOTOS = ["https://photos.example.com/front.jpg"]


class TestSelectProviders:
    def test_keyword_pass(self):
        selected = select_providers(QuestionCategory.LOCATION_DISTANCE, "How far is the nearest Whole Foods?")
        assert selected == {"google_places"}

    def test_keywords_from_several_providers_are_unioned(self):
        selected = select_providers(QuestionCategory.ENVIRONMENTAL_RISK, "flood or earthquake or wildfire?")
        assert selected == {"fema", "usgs", "wildfire"}

    def test_category_defaults_when_no_keyword(self):
        selected = select_providers(QuestionCategory.SCHOOLS, "Are the kids going to be okay here?")
        assert selected == set(CATEGORY_DEFAULTS[QuestionCategory.SCHOOLS])

    def test_general_defaults_to_ai(self):
        assert select_providers(QuestionCategory.GENERAL, "Tell me something") == {"perplexity"}

    def test_idempotent(self):
        question = "Is this a good investment with airbnb and rent?"
        first = select_providers(QuestionCategory.FINANCIAL_INVESTMENT, question)
        second = select_providers(QuestionCategory.FINANCIAL_INVESTMENT, question)
        assert first == second

    def test_independent_of_index_order(self):
        question = "Any flood, crime or noise problems near the school?"
        expected = select_providers(QuestionCategory.RED_FLAGS, question)
        items = list(PROVIDER_INDEX.items())
        for rotation in range(len(items)):
            rotated = dict(items[rotation:] + items[:rotation])
            assert select_providers(QuestionCategory.RED_FLAGS, question, index=rotated) == expected
        assert select_providers(QuestionCategory.RED_FLAGS, question, index=dict(reversed(items))) == expected

    def test_independent_of_keyword_order(self):
        question = "Is the crime rate safe?"
        descriptor = PROVIDER_INDEX["neighborhoodscout"]
        for permutation in itertools.permutations(descriptor.trigger_keywords):
            index = dict(PROVIDER_INDEX)
            index["neighborhoodscout"] = dataclasses.replace(descriptor, trigger_keywords=permutation)
            assert select_providers(QuestionCategory.NEIGHBORHOOD_SAFETY, question, index=index) == {"neighborhoodscout"}


class TestPredicates:
    def test_ai_categories(self):
        assert needs_ai_fallback(QuestionCategory.NEIGHBORHOOD_VIBE, "vibe?")
        assert needs_ai_fallback(QuestionCategory.PROPERTY_HISTORY, "sold before?")
        assert needs_ai_fallback(QuestionCategory.GENERAL, "anything")

    def test_ai_keywords(self):
        assert needs_ai_fallback(QuestionCategory.SCHOOLS, "What does reddit say about the school?")
        assert needs_ai_fallback(QuestionCategory.PROPERTY_LEGAL, "Any HOA rules on ADUs?")
        assert not needs_ai_fallback(QuestionCategory.SCHOOLS, "How good is the school?")

    def test_extrapolation_categories(self):
        assert needs_extrapolation(QuestionCategory.FINANCIAL_INVESTMENT)
        assert needs_extrapolation(QuestionCategory.COMPARISON)
        assert not needs_extrapolation(QuestionCategory.SCHOOLS)

    def test_comparison_has_no_recipe(self):
        assert recipe_for(QuestionCategory.COMPARISON) is None
        assert recipe_for(QuestionCategory.RED_FLAGS) is EXTRAPOLATION_RECIPES[ExtrapolationType.RED_FLAGS]

    def test_vision_needs_photos(self):
        assert needs_vision("Will my car fit in the garage?", has_photos=True)
        assert not needs_vision("Will my car fit in the garage?", has_photos=False)
        assert not needs_vision("How far is the school?", has_photos=True)

    def test_vision_prompts(self):
        assert choose_vision_prompt("Will my Tesla fit?") == "garageSize"
        assert choose_vision_prompt("Is the kitchen updated?") == "kitchenCondition"
        assert choose_vision_prompt("How much natural light?") == "naturalLight"
        assert choose_vision_prompt("Is the backyard private?") == "backyardPrivacy"
        assert choose_vision_prompt("Show me the photos") == "overallCondition"

    def test_provider_timeouts(self):
        assert provider_timeout("perplexity") == 30.0
        assert provider_timeout("gemini_vision") == 60.0
        assert provider_timeout("fema") == 10.0
        assert provider_timeout("unknown") == 10.0


class TestAIQueries:
    def test_keyword_templates(self):
        context = PropertyContext()
        queries = build_ai_queries(QuestionCategory.PROPERTY_HISTORY, "Any permit or HOA issues?", context)
        assert [q.template for q in queries] == ["permitHistory", "hoaInfo"]
        assert queries[0].params["address"] == context.address

    def test_general_template_carries_question(self):
        queries = build_ai_queries(QuestionCategory.GENERAL, "Tell me a story", PropertyContext())
        assert len(queries) == 1
        assert queries[0].template == "general"
        assert queries[0].params["question"] == "Tell me a story"

    def test_default_template_is_sentiment(self):
        queries = build_ai_queries(QuestionCategory.PROPERTY_HISTORY, "sold before?", PropertyContext())
        assert [q.template for q in queries] == ["neighborhoodSentiment"]


class TestRoutingPlan:
    def test_investment_uses_recipe(self):
        plan = build_routing_plan("Is this a good investment?", PropertyContext())
        assert plan.category == QuestionCategory.FINANCIAL_INVESTMENT
        assert plan.handlers == [HandlerKind.EXTRAPOLATOR]
        assert plan.recipe.type == ExtrapolationType.INVESTMENT_ANALYSIS
        assert plan.direct_providers == ()

    def test_direct_providers_are_structured_and_sorted(self):
        plan = build_routing_plan("Is it in a flood zone near the earthquake fault?", PropertyContext())
        assert plan.handlers == [HandlerKind.DIRECT_API]
        assert plan.direct_providers == ("fema", "usgs")

    def test_vibe_runs_ai_only(self):
        plan = build_routing_plan("What is it like to live here?", PropertyContext())
        assert plan.category == QuestionCategory.NEIGHBORHOOD_VIBE
        assert plan.handlers == [HandlerKind.AI_QUERY]
        assert plan.ai_queries[0].template == "neighborhoodSentiment"

    def test_vision_with_photos(self):
        plan = build_routing_plan("Will my car fit in the garage?", PropertyContext(photos=PHOTOS))
        assert HandlerKind.VISION in plan.handlers
        assert plan.vision.prompt == "garageSize"

    def test_red_flags_runs_recipe_and_ai(self):
        plan = build_routing_plan("Any red flags?", PropertyContext())
        assert set(plan.handlers) == {HandlerKind.AI_QUERY, HandlerKind.EXTRAPOLATOR}

    def test_same_question_same_plan(self):
        context = PropertyContext(cachedData={"estated": {"valuation": {"value": 1}}})
        first = build_routing_plan("Is this overpriced?", context)
        second = build_routing_plan("Is this overpriced?", context)
        assert first.category == second.category
        assert first.providers == second.providers
        assert describe_plan(first) == describe_plan(second)

    def test_describe_plan(self):
        described = describe_plan(build_routing_plan("What's the true monthly cost?", PropertyContext()))
        assert described["category"] == "financial_cost"
        assert described["recipe"] == "true_monthly_cost"
        assert described["handlers"] == ["EXTRAPOLATOR"]
