"""
Food reference data - calorie lookup, quantity parsing, dietary rules.

FOOD_DB values are per 100 g. Lookups pick the longest database key that
appears in the food name ("chicken breast" beats "chicken").
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from app.plans.profile import DietaryPref

# kcal, protein g per 100 g
FOOD_DB: Dict[str, Tuple[float, float]] = {
    # Proteins
    "chicken": (165, 31),
    "chicken breast": (165, 31),
    "grilled chicken": (165, 31),
    "turkey": (135, 30),
    "beef": (250, 26),
    "steak": (271, 26),
    "salmon": (208, 20),
    "tuna": (132, 29),
    "fish": (150, 25),
    "shrimp": (99, 24),
    "egg": (155, 13),
    "eggs": (155, 13),
    "egg whites": (52, 11),
    "tofu": (76, 8),
    "tempeh": (192, 20),
    "paneer": (265, 18),
    "cottage cheese": (98, 11),
    "greek yogurt": (59, 10),
    "yogurt": (61, 3.5),
    "whey protein": (400, 80),
    "protein powder": (400, 80),
    "lentils": (116, 9),
    "chickpeas": (164, 8.9),
    "black beans": (132, 8.9),
    "edamame": (121, 12),
    # Carbs
    "rice": (130, 2.7),
    "brown rice": (112, 2.6),
    "white rice": (130, 2.7),
    "quinoa": (120, 4.4),
    "oats": (389, 17),
    "oatmeal": (68, 2.4),
    "pasta": (131, 5),
    "bread": (265, 9),
    "whole wheat bread": (247, 13),
    "potato": (77, 2),
    "sweet potato": (86, 1.6),
    "banana": (89, 1.1),
    "apple": (52, 0.3),
    "orange": (47, 0.9),
    "berries": (57, 0.7),
    # Fats
    "avocado": (160, 2),
    "olive oil": (884, 0),
    "nuts": (607, 20),
    "almonds": (579, 21),
    "walnuts": (654, 15),
    "peanut butter": (588, 25),
    "almond butter": (614, 21),
    "cheese": (402, 25),
    "hummus": (166, 8),
    # Vegetables
    "broccoli": (34, 2.8),
    "spinach": (23, 2.9),
    "salad": (20, 1.5),
    "vegetables": (30, 2),
    "mixed vegetables": (35, 2),
    # Dairy
    "milk": (42, 3.4),
    "almond milk": (17, 0.6),
}

DEFAULT_FOOD = (150.0, 8.0)

# grams per unit
UNIT_GRAMS: Dict[str, float] = {
    "g": 1, "gram": 1, "grams": 1,
    "oz": 28.35,
    "cup": 240, "cups": 240,
    "tbsp": 15,
    "tsp": 5,
    "slice": 30, "slices": 30,
    "piece": 100, "pieces": 100,
    "scoop": 30, "scoops": 30,
    "ml": 1,
    "l": 1000,
}

_QTY_RE = re.compile(
    r"(\d+(?:\.\d+)?)\s*(grams?|g|oz|cups?|tbsp|tsp|slices?|pieces?|scoops?|ml|l)?\b",
    re.IGNORECASE,
)

# Meat and seafood keywords forbidden on vegetarian-style diets
MEAT_KEYWORDS: List[str] = [
    "chicken", "beef", "pork", "fish", "salmon", "tuna", "meat", "steak", "bacon",
    "ham", "turkey", "shrimp", "prawn", "lamb", "mutton", "sausage",
]
EGG_KEYWORDS: List[str] = ["egg"]


def lookup_food(food: str) -> Optional[Tuple[float, float]]:
    """(kcal, protein) per 100 g for the longest matching key, or None."""
    name = (food or "").lower()
    best: Optional[str] = None
    for key in FOOD_DB:
        if re.search(rf"\b{re.escape(key)}\b", name) and (best is None or len(key) > len(best)):
            best = key
    return FOOD_DB[best] if best else None


def parse_quantity_grams(qty: str) -> float:
    """Convert '150g', '2 slices', '1.5 cups' to grams (100 g when unparseable)."""
    m = _QTY_RE.search(qty or "")
    if not m:
        return 100.0
    amount = float(m.group(1))
    if not m.group(2) and amount <= 12:
        # "3 eggs", "2 large" - a count, not grams
        return amount * UNIT_GRAMS["piece"]
    unit = (m.group(2) or "g").lower()
    return amount * UNIT_GRAMS.get(unit, 1)


def estimate_item(food: str, qty: str) -> Tuple[float, float, bool]:
    """
    Estimate (kcal, protein_g, recognised) for one meal item.

    Unknown foods fall back to DEFAULT_FOOD and report recognised=False.
    """
    entry = lookup_food(food)
    grams = parse_quantity_grams(qty)
    kcal_100, protein_100 = entry or DEFAULT_FOOD
    return kcal_100 * grams / 100.0, protein_100 * grams / 100.0, entry is not None


def forbidden_keywords(diet: DietaryPref) -> List[str]:
    if diet == DietaryPref.VEGETARIAN:
        return MEAT_KEYWORDS + EGG_KEYWORDS
    if diet == DietaryPref.EGGITARIAN:
        return list(MEAT_KEYWORDS)
    return []


def dietary_conflict(food: str, diet: DietaryPref) -> Optional[str]:
    """Return the forbidden keyword a food name contains, if any."""
    name = (food or "").lower()
    for kw in forbidden_keywords(diet):
        if re.search(rf"\b{re.escape(kw)}(?:s|es)?\b", name):
            return kw
    return None


# =============================================================================
# FALLBACK MEAL TEMPLATES
# =============================================================================

# (food, share of the meal's kcal); every food must resolve in FOOD_DB
_MEAL_FOODS: Dict[DietaryPref, Dict[str, List[Tuple[str, float]]]] = {
    DietaryPref.NON_VEG: {
        "breakfast": [("Oats", 0.45), ("Greek yogurt", 0.35), ("Banana", 0.20)],
        "lunch": [("Chicken breast", 0.45), ("Brown rice", 0.40), ("Broccoli", 0.15)],
        "dinner": [("Salmon", 0.50), ("Sweet potato", 0.35), ("Spinach", 0.15)],
        "snack": [("Almonds", 0.50), ("Apple", 0.50)],
        "main": [("Chicken breast", 0.40), ("Brown rice", 0.35), ("Avocado", 0.15), ("Broccoli", 0.10)],
    },
    DietaryPref.EGGITARIAN: {
        "breakfast": [("Eggs", 0.50), ("Whole wheat bread", 0.35), ("Orange", 0.15)],
        "lunch": [("Lentils", 0.45), ("Brown rice", 0.40), ("Spinach", 0.15)],
        "dinner": [("Tofu", 0.45), ("Quinoa", 0.40), ("Broccoli", 0.15)],
        "snack": [("Greek yogurt", 0.50), ("Berries", 0.50)],
        "main": [("Eggs", 0.35), ("Quinoa", 0.35), ("Avocado", 0.20), ("Spinach", 0.10)],
    },
    DietaryPref.VEGETARIAN: {
        "breakfast": [("Oats", 0.45), ("Greek yogurt", 0.35), ("Berries", 0.20)],
        "lunch": [("Chickpeas", 0.45), ("Brown rice", 0.40), ("Spinach", 0.15)],
        "dinner": [("Paneer", 0.45), ("Quinoa", 0.40), ("Broccoli", 0.15)],
        "snack": [("Cottage cheese", 0.50), ("Apple", 0.50)],
        "main": [("Tofu", 0.35), ("Quinoa", 0.35), ("Avocado", 0.20), ("Spinach", 0.10)],
    },
}


def meal_kind(meal_name: str, meal_count: int) -> str:
    """Template kind for a meal name ('breakfast', 'lunch', 'dinner', 'snack', 'main')."""
    name = meal_name.lower()
    if meal_count <= 2:
        return "main"
    for kind in ("breakfast", "lunch", "dinner"):
        if kind in name:
            return kind
    return "snack"


def meal_foods(diet: DietaryPref, kind: str) -> List[Tuple[str, float]]:
    return list(_MEAL_FOODS[diet][kind])


def grams_for_kcal(food: str, kcal: float) -> int:
    """Grams of a food that provide kcal (at least 5 g)."""
    entry = lookup_food(food) or DEFAULT_FOOD
    return max(5, int(round(kcal * 100.0 / entry[0])))


__all__ = [
    "FOOD_DB",
    "UNIT_GRAMS",
    "lookup_food",
    "parse_quantity_grams",
    "estimate_item",
    "forbidden_keywords",
    "dietary_conflict",
    "meal_kind",
    "meal_foods",
    "grams_for_kcal",
]
