"""
Centralized constants and configuration data.

This module contains the fixed chemistry tables, thresholds and heuristic
weights used throughout the optimizer. Centralizing these values makes
them easy to modify and maintain.

Categories:
- Fatty acid keys
- Soap property definitions and recommended ranges
- Optimizer defaults
- Property-to-fatty-acid conversion ratios
- Heuristic scoring constants
"""

from typing import Dict, List, Tuple

# ==============================================================================
# FATTY ACIDS
# ==============================================================================

FATTY_ACID_KEYS: List[str] = [
    "caprylic", "capric", "lauric", "myristic", "palmitic", "palmitoleic",
    "stearic", "oleic", "linoleic", "linolenic", "arachidic", "behenic",
    "erucic", "ricinoleic"
]


# ==============================================================================
# SOAP PROPERTIES
# ==============================================================================

PROPERTY_KEYS: List[str] = [
    "hardness", "degreasing", "moisturizing", "lather_volume", "lather_density"
]


# Which fatty acids contribute to each soap property (each weighted 1.0)
PROPERTY_FATTY_ACIDS: Dict[str, List[str]] = {
    "hardness": [
        "caprylic", "capric", "lauric", "myristic",
        "palmitic", "stearic", "arachidic", "behenic"
    ],
    "degreasing": ["caprylic", "capric", "lauric", "myristic"],
    "moisturizing": [
        "palmitoleic", "oleic", "ricinoleic", "linoleic", "linolenic", "erucic"
    ],
    "lather_volume": ["lauric", "myristic", "ricinoleic"],
    "lather_density": ["palmitic", "stearic", "ricinoleic"]
}


# Narrower acid sets used when judging a single fat's pull on a property
PROPERTY_CORE_FATTY_ACIDS: Dict[str, List[str]] = {
    "hardness": ["lauric", "myristic", "palmitic", "stearic"],
    "degreasing": ["lauric", "myristic"],
    "moisturizing": ["oleic", "ricinoleic", "linoleic", "linolenic"],
    "lather_volume": ["lauric", "myristic", "ricinoleic"],
    "lather_density": ["palmitic", "stearic", "ricinoleic"]
}


# Recommended ranges for soap properties (min, max)
PROPERTY_RANGES: Dict[str, Tuple[float, float]] = {
    "hardness": (29.0, 54.0),
    "degreasing": (12.0, 22.0),
    "moisturizing": (44.0, 69.0),
    "lather_volume": (14.0, 46.0),
    "lather_density": (16.0, 48.0)
}


# Hyphenated spellings accepted on input
PROPERTY_ALIASES: Dict[str, str] = {
    "lather-volume": "lather_volume",
    "lather-density": "lather_density"
}


# ==============================================================================
# OPTIMIZER DEFAULTS
# ==============================================================================

PROFILE: Dict[str, float] = {
    "MIN_FAT_PERCENT": 5,
    "MAX_FAT_PERCENT": 80,
    "DEFAULT_MAX_FATS": 5,
    "OPTIMIZER_ITERATIONS": 100,
    "OPTIMIZER_STEP_SIZE": 2,
    "CONVERGENCE_THRESHOLD": 0.01,
    "MATCH_QUALITY_FACTOR": 3      # 100 - avg_deviation * this factor
}


RANDOM_BLEND: Dict[str, int] = {
    "MIN_FATS": 3,
    "MAX_FATS": 5,
    "MAX_ATTEMPTS": 50,
    "FALLBACK_ATTEMPTS": 20
}


CUPBOARD: Dict[str, float] = {
    "BASE_PORTION": 0.75,
    "SUGGESTION_PORTION": 0.25,
    "ITERATIONS": 50,
    "STEP_SIZE": 2,
    "MAX_SUGGESTIONS": 3,
    "MAX_ATTEMPTS": 30
}


# Midpoint-ish profile used by the optimized fallback of the random generator
BALANCED_TARGET: Dict[str, float] = {
    "lauric": 10,      # degreasing, lather volume
    "myristic": 5,     # degreasing, lather volume
    "palmitic": 20,    # hardness, lather density
    "stearic": 8,      # hardness, lather density
    "oleic": 40,       # moisturizing
    "linoleic": 10,    # moisturizing
    "ricinoleic": 5    # lather volume, lather density
}


# ==============================================================================
# PROPERTY -> FATTY ACID CONVERSION
# ==============================================================================

PROPERTY_CONVERSION: Dict[str, float] = {
    # Degreasing split between lauric and myristic
    "DEGREASING_LAURIC_RATIO": 0.7,
    "DEGREASING_MYRISTIC_RATIO": 0.3,
    # Hardness remainder split between palmitic and stearic
    "HARDNESS_PALMITIC_RATIO": 0.6,
    "HARDNESS_STEARIC_RATIO": 0.4,
    # Moisturizing distribution
    "MOISTURIZING_OLEIC_RATIO": 0.8,
    "MOISTURIZING_RICINOLEIC_RATIO": 0.05,
    "MOISTURIZING_LINOLEIC_RATIO": 0.12,
    "MOISTURIZING_LINOLENIC_RATIO": 0.03
}


# Hardness + moisturizing should be close to 100 (saturated + unsaturated)
HARDNESS_MOISTURIZING_TOTAL: Tuple[float, float] = (85.0, 115.0)


# ==============================================================================
# HEURISTIC SCORING CONSTANTS
# ==============================================================================

SCORING_WEIGHTS: Dict[str, float] = {
    # Usefulness ranking
    "NOT_WORSE_BONUS": 5.0,
    # Range score
    "IN_RANGE_POINTS": 100.0,
    "OUT_OF_RANGE_BASE": 50.0,
    "OUT_OF_RANGE_DECAY": 2.0,
    # Cupboard candidate pre-filter
    "DEFICIT_MULTIPLIER": 2.0,
    "OVERSHOOT_SAFE_BONUS": 1.0,
    # Cupboard step score
    "PROGRESS_IN_RANGE_POINTS": 20.0,
    "PROGRESS_PARTIAL_POINTS": 10.0
}
