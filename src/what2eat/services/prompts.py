"""Prompt builders for suggestions, recipes, plans and ingredient extraction.

Every builder is a pure function. Optional clauses are left out entirely when
their source is empty; dietary restrictions are always rendered with
``RESTRICTION_MARKER`` whenever any are known.
"""

from collections.abc import Iterable

from what2eat.domain.meal_plans import MealPlanRequest, PlannedMeal
from what2eat.domain.preferences import UserPreferenceProfile
from what2eat.domain.suggestions import MealSuggestion, SuggestionRequest

RESTRICTION_MARKER = (
    "⚠️ CRITICAL - Dietary restrictions (must be strictly followed)"
)
EXCLUDE_MARKER = (
    "⚠️ IMPORTANT: Do NOT suggest any of these meals as they were already suggested"
)

DEFAULT_TONE = "friendly"

TONE_DESCRIPTIONS: dict[str, str] = {
    "friendly": (
        "Be warm, encouraging, and conversational. Use emojis sparingly and "
        "make cooking feel fun and approachable."
    ),
    "expert": (
        "Be professional and detailed. Provide precise measurements, "
        "techniques, and chef-level tips. Be thorough but efficient."
    ),
    "minimal": (
        "Be concise and to the point. Focus on essential information only. "
        "No fluff."
    ),
}

SPICE_DESCRIPTIONS: dict[str, str] = {
    "mild": "mildly spiced",
    "medium": "moderately spicy",
    "hot": "very spicy/hot",
}

MOOD_DESCRIPTIONS: dict[str, str] = {
    "healthy": "something healthy and nutritious",
    "quick": "something quick and easy to prepare",
    "comfort": "comfort food that's satisfying",
    "light": "something light and not too heavy",
    "filling": "something filling and substantial",
    "sweet": "something sweet",
}

SKILL_DESCRIPTIONS: dict[str, str] = {
    "beginner": "Keep recipes simple with basic techniques",
    "intermediate": "Moderately complex recipes are fine",
    "advanced": "Can handle challenging recipes",
}

GOAL_DESCRIPTIONS: dict[str, str] = {
    "lose_weight": "Focus on lower-calorie, high-protein options",
    "gain_muscle": "Focus on high-protein meals",
    "maintain": "Balanced nutrition",
    "eat_healthier": "Emphasize whole foods and vegetables",
}

BUDGET_DESCRIPTIONS: dict[str, str] = {
    "low": "Use affordable, budget-friendly ingredients",
    "medium": "Moderate budget",
    "high": "Can include premium ingredients",
}

_RECIPE_FORMAT = """When providing full recipes, ALWAYS use proper markdown formatting:

## Recipe Name

Brief description of the dish.

### 🥘 Ingredients

- Ingredient 1 with quantity
- Ingredient 2 with quantity

### 📝 Instructions

1. **Step title**: Step description with details.

2. **Step title**: Step description with details.

### 💡 Pro Tips

- Tip 1
- Tip 2

### ⏱️ Time & Difficulty

- **Prep time**: X minutes
- **Cook time**: X minutes
- **Difficulty**: Easy/Medium/Hard

### 📊 Nutrition Facts (per serving)

- **Calories**: X kcal
- **Protein**: Xg
- **Carbohydrates**: Xg
- **Fat**: Xg

Always use numbered lists for instructions, bullet points for ingredients, \
and bold text for emphasis. Add blank lines between sections for readability."""

STRUCTURED_RECIPE_SYSTEM_PROMPT = """You are What2Eat, a helpful AI cooking \
assistant. Generate complete recipes with detailed ingredient lists.

CRITICAL REQUIREMENTS:
1. You MUST include an "ingredients" array with ALL ingredients
2. Each ingredient needs: name, quantity (number or null), unit (string or \
null), category, is_optional
3. Include EVERY ingredient - even salt, pepper, oil, water
4. Use standard units: g, kg, ml, L, cups, tbsp, tsp, pieces
5. Provide realistic nutritional estimates per serving
6. In "instructions", write ONLY the step-by-step cooking steps. DO NOT \
include an ingredients list there."""

MEAL_PLAN_SYSTEM_PROMPT = """You are What2Eat, an AI meal planning assistant. \
Generate diverse, practical meal plans that are:
- Nutritionally balanced
- Varied (no repeating meals within the plan)
- Practical to cook at home
- Matched to the user's preferences and restrictions

For each meal, provide a brief but appetizing description, realistic cooking \
time, and appropriate difficulty level."""

IMAGE_INGREDIENTS_PROMPT = """You are an expert at identifying food ingredients \
from images of refrigerators, pantries, and kitchen shelves.

Analyze this image and identify ALL visible food ingredients. For each ingredient:
1. Provide the common name in English (e.g., "eggs", "milk", "tomatoes")
2. Estimate your confidence (0.0 to 1.0) based on how clearly you can see it
3. Categorize it (vegetable, fruit, dairy, meat, seafood, grain, condiment, \
beverage, etc.)

Be thorough - look for:
- Items on shelves and in drawers
- Partially visible items
- Items in containers (try to identify what's inside if possible)
- Bottles, jars, and packaged goods

Only include food items that can be used as cooking ingredients. Skip non-food \
items. If you're unsure about an item, include it with a lower confidence score."""


def build_system_prompt(
    tone: str | None = None, profile: UserPreferenceProfile | None = None
) -> str:
    """Return the assistant persona and markdown format contract.

    When a profile is given, its restrictions, dislikes, equipment and skill
    are appended so that streamed recipes honour them as well.
    """
    tone_text = TONE_DESCRIPTIONS.get(tone or DEFAULT_TONE)
    if tone_text is None:
        tone_text = TONE_DESCRIPTIONS[DEFAULT_TONE]
    prompt = (
        "You are What2Eat, a knowledgeable AI cooking assistant. Your goal is "
        "to help users discover delicious meals they can prepare based on "
        "their preferences, available ingredients, and dietary needs.\n\n"
        f"{tone_text}\n\n"
        "You should:\n"
        "- Provide practical, easy-to-follow recipes\n"
        "- Consider the user's skill level and available equipment\n"
        "- Respect all dietary restrictions strictly (this is critical for "
        "health reasons)\n"
        "- Include approximate cooking times and portion sizes\n\n"
        f"{_RECIPE_FORMAT}"
    )
    if profile is None:
        return prompt
    clauses: list[str] = []
    _add_restrictions(clauses, profile.dietary_restrictions)
    _add_list(clauses, "User dislikes these foods (avoid using)", profile.food_dislikes)
    _add_list(clauses, "Available kitchen equipment", profile.kitchen_equipment)
    if profile.cooking_skill:
        clauses.append(
            f"Cooking skill level: {profile.cooking_skill} - adjust complexity "
            "accordingly"
        )
    if clauses:
        prompt += "\n\n" + "\n".join(clauses)
    return prompt


def build_request_prompt(
    request: SuggestionRequest, profile: UserPreferenceProfile | None = None
) -> str:
    """Compose the user prompt for a wizard request."""
    parts = _opening(request)

    restrictions = _merge(
        request.selected_restrictions,
        profile.dietary_restrictions if profile else (),
    )
    _add_restrictions(parts, restrictions)

    if request.meal_type:
        parts.append(f"This is for {request.meal_type}.")
    cooking_time = request.cooking_time_minutes or (
        profile.max_cooking_time_minutes if profile else None
    )
    if cooking_time:
        parts.append(f"I have about {cooking_time} minutes available for cooking.")
    cuisines = request.selected_cuisines or (profile.cuisines if profile else ())
    _add_list(parts, "Preferred cuisines", cuisines, suffix=".")
    spice = _spice_clause(request.spicy_level)
    if spice:
        parts.append(spice)
    if request.mood_tags:
        moods = ", ".join(MOOD_DESCRIPTIONS.get(tag, tag) for tag in request.mood_tags)
        parts.append(f"I'm in the mood for: {moods}.")
    equipment = request.selected_equipment or (
        profile.kitchen_equipment if profile else ()
    )
    _add_list(parts, "Kitchen equipment I can use", equipment, suffix=".")
    if profile is not None:
        parts.extend(_profile_clauses(profile))
    if request.additional_preferences:
        parts.append(f"Additional preferences: {request.additional_preferences}")
    if request.extra_info:
        parts.append(f"Extra notes: {request.extra_info}")
    return "\n".join(parts)


def build_suggestions_prompt(
    request: SuggestionRequest,
    profile: UserPreferenceProfile | None,
    exclude_names: Iterable[str],
    *,
    count: str = "2-3",
    max_excluded: int | None = None,
) -> str:
    """Compose the suggestion-batch prompt, including the exclude clause."""
    prompt = build_request_prompt(request, profile)
    exclude = _exclude_clause(exclude_names, max_excluded)
    if exclude:
        prompt += f"\n\n{exclude}"
    prompt += (
        f"\n\nBased on the above preferences and constraints, suggest {count} "
        "DIVERSE and CREATIVE meal options. Each suggestion MUST:\n"
        "- Be a DIFFERENT type of dish (don't suggest similar dishes)\n"
        "- Fit within the cooking time constraint if specified\n"
        "- Strictly adhere to all dietary restrictions\n"
        "- Match the preferred cuisine styles if specified\n"
        "- Be achievable with the available kitchen equipment\n"
        "- Match the desired spice level and mood preferences\n"
        "- Only use a sensible selection of available ingredients (not all of "
        "them)\n\n"
        "Be creative and suggest varied options - for example, if one dish is "
        "a soup, make another a stir-fry or salad."
    )
    return prompt


def build_full_recipe_prompt(
    request: SuggestionRequest,
    profile: UserPreferenceProfile | None,
    selected_meal: MealSuggestion | None = None,
) -> str:
    """Compose the streamed full-recipe prompt.

    Without ``selected_meal`` the recipe is requested for the request's meal
    name, which is the "I know what to cook" flow.
    """
    name = selected_meal.name if selected_meal else request.meal_name
    parts = [f'Please provide the complete recipe for "{name or "a specific dish"}".']
    if selected_meal and selected_meal.description:
        parts.append(f"Description: {selected_meal.description}")
    if request.portions > 1:
        parts.append(f"Please scale the recipe for {request.portions} portions.")

    restrictions = _merge(
        request.selected_restrictions,
        profile.dietary_restrictions if profile else (),
    )
    _add_restrictions(parts, restrictions)
    equipment = request.selected_equipment or (
        profile.kitchen_equipment if profile else ()
    )
    _add_list(parts, "Available kitchen equipment", equipment, suffix=".")
    if request.spicy_level in SPICE_DESCRIPTIONS:
        parts.append(f"Spice level: {SPICE_DESCRIPTIONS[request.spicy_level]}.")
    if request.ingredients and request.ingredient_source == "use-my-ingredients":
        parts.append(
            "Please prioritize using these available ingredients: "
            f"{request.ingredients}"
        )
    if profile is not None:
        _add_list(parts, "Foods to avoid", profile.food_dislikes)

    parts.append(
        "\nProvide the complete recipe with:\n"
        "1. A brief introduction\n"
        "2. Full ingredients list with exact quantities\n"
        "3. Detailed step-by-step cooking instructions\n"
        "4. Pro tips for best results\n"
        "5. Suggested variations or substitutions\n"
        "6. Nutrition facts per serving (calories, protein, carbohydrates, fat)"
    )
    return "\n".join(parts)


def build_quick_search_prompt(
    query: str,
    profile: UserPreferenceProfile | None = None,
    exclude_names: Iterable[str] = (),
    *,
    max_excluded: int | None = None,
) -> str:
    """Compose the free-text search suggestion prompt."""
    parts = [
        f'Based on this food request: "{query}"',
        "",
        "Generate 4-5 diverse meal suggestions that match the request.",
    ]
    if profile is not None:
        _add_restrictions(parts, profile.dietary_restrictions)
        _add_list(
            parts,
            "User dislikes these foods (avoid suggesting)",
            profile.food_dislikes,
        )
        _add_list(
            parts,
            "User's favorite cuisines (prefer when relevant)",
            profile.cuisines,
        )
        if profile.cooking_skill:
            parts.append(f"Cooking skill level: {profile.cooking_skill}")
        if profile.max_cooking_time_minutes:
            parts.append(
                "Preferred max cooking time: "
                f"{profile.max_cooking_time_minutes} minutes"
            )
        if profile.calorie_target:
            parts.append(
                f"Daily calorie target: {profile.calorie_target} kcal - include "
                "approximate calories"
            )
        if profile.protein_target_g:
            parts.append(
                f"Protein target: {profile.protein_target_g}g - include "
                "approximate protein content"
            )
    exclude = _exclude_clause(exclude_names, max_excluded)
    if exclude:
        parts.append(exclude)
    parts.append(
        "\nMake suggestions varied in cuisine, cooking method, and complexity. "
        "Include a mix of options."
    )
    return "\n".join(parts)


def build_quick_recipe_prompt(
    query: str, selected_meal: MealSuggestion | None = None
) -> str:
    """Compose the streamed recipe prompt for a quick-search result."""
    include = (
        "Include:\n"
        "- Complete list of ingredients with precise quantities\n"
        "- Step-by-step cooking instructions\n"
        "- Cooking tips and variations\n"
        "- Nutritional information estimate (calories, protein, carbs, fat)\n"
        "- Serving suggestions"
    )
    if selected_meal is None:
        return (
            f'Provide a complete, detailed recipe based on this request: "{query}"'
            f"\n\n{include}"
        )
    lines = [f"Provide a complete, detailed recipe for: {selected_meal.name}", ""]
    if selected_meal.description:
        lines.extend([f"Description: {selected_meal.description}", ""])
    lines.extend([f'Original search context: "{query}"', "", include])
    return "\n".join(lines)


def build_structured_recipe_prompt(  # noqa: PLR0913
    meal_name: str,
    portions: int,
    *,
    restrictions: Iterable[str] = (),
    cuisines: Iterable[str] = (),
    equipment: Iterable[str] = (),
    spicy_level: str | None = None,
) -> str:
    """Compose the prompt for a complete recipe with a structured ingredient list."""
    parts = [f'Generate a complete recipe for "{meal_name}" for {portions} portion(s).']
    _add_restrictions(parts, _merge(restrictions))
    _add_list(parts, "Cuisine style", list(cuisines), suffix=".")
    _add_list(parts, "Available equipment", list(equipment), suffix=".")
    if spicy_level in SPICE_DESCRIPTIONS:
        parts.append(f"Spice level: {SPICE_DESCRIPTIONS[spicy_level]}.")
    parts.append("\nIMPORTANT: Include ALL ingredients in the ingredients array.")
    return "\n".join(parts)


def build_meal_plan_prompt(
    request: MealPlanRequest, profile: UserPreferenceProfile | None = None
) -> str:
    """Compose the multi-day meal plan prompt."""
    meal_types = ", ".join(request.meal_types)
    parts = [
        f"Generate a {request.days}-day meal plan with {meal_types} for each day.",
        "",
        "Requirements:",
        f"- Total meals per day: {request.meals_per_day}",
        f"- Meal types to include: {meal_types}",
        "- Ensure variety - don't repeat the same meals",
        "- Consider nutritional balance across the day",
        "",
    ]
    cuisines = request.cuisines or (profile.cuisines if profile else ())
    _add_list(parts, "Preferred cuisines", cuisines)
    restrictions = _merge(
        request.restrictions, profile.dietary_restrictions if profile else ()
    )
    _add_restrictions(parts, restrictions)
    if profile is not None:
        parts.extend(_profile_clauses(profile, daily=True))
        if profile.max_cooking_time_minutes:
            parts.append(
                "Max cooking time per meal: "
                f"{profile.max_cooking_time_minutes} minutes"
            )
    return "\n".join(parts).rstrip()


def build_planned_recipe_system_prompt(meal: PlannedMeal) -> str:
    """Return the format contract for a recipe generated from a plan entry."""
    lines = [
        "You are What2Eat, a friendly cooking assistant. Provide detailed, "
        "easy-to-follow recipes with proper markdown formatting.",
        "",
        "Always include:",
        "- Full ingredient list with quantities",
        "- Step-by-step numbered instructions",
        "- Pro tips",
        "- Nutrition facts section",
        "",
        "Use this format:",
        f"## {meal.name}",
        "",
    ]
    if meal.description:
        lines.extend([meal.description, ""])
    lines.extend(
        [
            "### 🥘 Ingredients",
            "- Item 1",
            "- Item 2",
            "",
            "### 📝 Instructions",
            "1. **Step**: Description",
            "2. **Step**: Description",
            "",
            "### 💡 Pro Tips",
            "- Tip 1",
            "",
            "### ⏱️ Time & Difficulty",
            "- **Prep time**: X minutes",
            "- **Cook time**: X minutes",
            f"- **Difficulty**: {meal.difficulty or 'Easy/Medium/Hard'}",
            "",
            "### 📊 Nutrition Facts (per serving)",
            "- **Calories**: X kcal",
            "- **Protein**: Xg",
            "- **Carbohydrates**: Xg",
            "- **Fat**: Xg",
        ]
    )
    return "\n".join(lines)


def build_planned_recipe_prompt(meal: PlannedMeal, meal_type: str) -> str:
    """Compose the recipe prompt for one planned meal."""
    lines = [f"Generate a complete recipe for: {meal.name}"]
    if meal.description:
        lines.append(f"Description: {meal.description}")
    lines.append(f"Meal type: {meal_type}")
    lines.append(f"Difficulty: {meal.difficulty}")
    if meal.estimated_time:
        lines.append(f"Target time: {meal.estimated_time}")
    return "\n".join(lines)


def build_ingredient_extraction_prompt(name: str, description: str) -> str:
    """Compose the ingredient extraction prompt for a recipe text."""
    return f"""Extract all ingredients from this recipe. Look for an "Ingredients" \
section or list.

Recipe Name: {name}

Recipe Description/Instructions:
{description}

Extract each ingredient with:
- name: The ingredient name (e.g., "chicken breast", "olive oil")
- quantity: The numeric amount (e.g., 2, 0.5, null if not specified)
- unit: The unit of measurement (e.g., "cups", "tbsp", "g", null if \
count-based like "2 eggs")
- category: One of: "proteins", "vegetables", "fruits", "dairy", "grains", \
"oils", "spices", "condiments", "other"
- is_optional: true if marked as optional

Include EVERY ingredient, even trace items such as salt, pepper, water and oil.
If no clear ingredients list is found, infer the ingredients from the cooking \
instructions.
Return an empty array only if no ingredients can be identified at all."""


def _opening(request: SuggestionRequest) -> list[str]:
    if request.flow_type == "ingredients-needed":
        name = request.meal_name or "a specific dish"
        parts = [
            f'I want to cook "{name}" and need the full recipe with ingredients list.'
        ]
        if request.portions > 1:
            parts.append(f"I need the recipe for {request.portions} portions.")
        return parts

    if request.ingredient_source == "use-my-ingredients":
        parts = [
            "I want to cook something using some of the ingredients I have at home."
        ]
        if request.ingredients:
            parts.append(f"Ingredients I have available: {request.ingredients}")
            parts.append(
                "IMPORTANT: You do NOT need to use all of these ingredients. Pick "
                "a sensible selection that works well together for each dish. "
                "Feel free to suggest recipes that only use 3-6 main ingredients "
                "from my list. It's better to make a delicious dish with fewer "
                "ingredients than to force all of them into one recipe."
            )
        return parts

    parts = [
        "I'm planning to go shopping and want meal suggestions. I'm open to "
        "buying whatever ingredients are needed."
    ]
    if request.ingredients:
        parts.append(
            "I'd prefer to include some of these ingredients if possible: "
            f"{request.ingredients}"
        )
    return parts


def _profile_clauses(
    profile: UserPreferenceProfile, *, daily: bool = False
) -> list[str]:
    clauses: list[str] = []
    if profile.budget_level:
        budget = BUDGET_DESCRIPTIONS.get(profile.budget_level, profile.budget_level)
        clauses.append(f"Budget: {budget}")
    if profile.primary_goal:
        goal = GOAL_DESCRIPTIONS.get(profile.primary_goal, profile.primary_goal)
        clauses.append(f"Goal: {goal}")
    if profile.cooking_skill:
        skill = SKILL_DESCRIPTIONS.get(profile.cooking_skill, profile.cooking_skill)
        clauses.append(f"Cooking skill: {skill}")
    prefix = "Daily" if daily else "My daily"
    targets = (
        ("calorie", profile.calorie_target, " kcal"),
        ("protein", profile.protein_target_g, "g"),
        ("carbohydrates", profile.carbs_target_g, "g"),
        ("fat", profile.fat_target_g, "g"),
    )
    for label, value, unit in targets:
        if value:
            clauses.append(f"{prefix} {label} target: approximately {value}{unit}")
    _add_list(clauses, "Flavor preferences", profile.flavor_preferences)
    _add_list(clauses, "Foods to avoid", profile.food_dislikes)
    return clauses


def _spice_clause(spicy_level: str | None) -> str | None:
    if not spicy_level:
        return None
    if spicy_level == "none":
        return "Spice preference: I prefer no spice/heat in my food."
    description = SPICE_DESCRIPTIONS.get(spicy_level, spicy_level)
    return f"Spice preference: I like my food {description}."


def _exclude_clause(names: Iterable[str], max_excluded: int | None) -> str | None:
    shown = sorted({name.strip() for name in names if name and name.strip()})
    if max_excluded is not None:
        shown = shown[:max_excluded]
    if not shown:
        return None
    return (
        f"{EXCLUDE_MARKER}: {', '.join(shown)}. "
        "Provide completely DIFFERENT meal ideas."
    )


def _add_restrictions(parts: list[str], restrictions: Iterable[str]) -> None:
    merged = _merge(restrictions)
    if merged:
        parts.append(f"{RESTRICTION_MARKER}: {', '.join(merged)}.")


def _add_list(
    parts: list[str], label: str, values: Iterable[str], suffix: str = ""
) -> None:
    cleaned = _merge(values)
    if cleaned:
        parts.append(f"{label}: {', '.join(cleaned)}{suffix}")


def _merge(*sources: Iterable[str]) -> list[str]:
    """Return non-blank values from all sources, exact duplicates dropped."""
    seen: set[str] = set()
    merged: list[str] = []
    for source in sources:
        for value in source:
            cleaned = value.strip() if isinstance(value, str) else ""
            if not cleaned or cleaned in seen:
                continue
            seen.add(cleaned)
            merged.append(cleaned)
    return merged
