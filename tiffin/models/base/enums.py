"""
Database enums shared by models and schemas.
"""

import enum


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MealItemType(str, enum.Enum):
    """Meal occurrences a package can include, in delivery order."""
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACKS = "snacks"


class PauseMealType(str, enum.Enum):
    """Target of a pause request. ALL expands to every materialized item."""
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACKS = "snacks"
    ALL = "all"


class PauseAction(str, enum.Enum):
    PAUSE = "pause"
    UNPAUSE = "unpause"


class SlotType(str, enum.Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING_DINNER = "evening_dinner"
    EVENING_SNACK = "evening_snack"


# Fixed default delivery window for each meal item
DEFAULT_SLOT_FOR_ITEM = {
    MealItemType.BREAKFAST: SlotType.MORNING,
    MealItemType.LUNCH: SlotType.AFTERNOON,
    MealItemType.DINNER: SlotType.EVENING_DINNER,
    MealItemType.SNACKS: SlotType.EVENING_SNACK,
}


class DietType(str, enum.Enum):
    VEG = "veg"
    NON_VEG = "non_veg"


class CuisineType(str, enum.Enum):
    SOUTH_INDIAN = "south_indian"
    NORTH_INDIAN = "north_indian"


class ContainerType(str, enum.Enum):
    STEEL = "steel"
    DISPOSABLE = "disposable"
    ECO_FRIENDLY = "eco_friendly"


class CurryOrderStatus(str, enum.Enum):
    ORDERED = "ordered"
    CANCELLED = "cancelled"
    FULFILLED = "fulfilled"


class UpgradeType(str, enum.Enum):
    VEG_TO_NONVEG = "veg_to_nonveg"
    SOUTH_TO_NORTH = "south_to_north"


class UpgradeScope(str, enum.Enum):
    MEAL = "meal"
    DAY = "day"
    WEEK = "week"
