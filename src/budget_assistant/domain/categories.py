from enum import Enum

from rapidfuzz import fuzz, process

FUZZY_THRESHOLD = 90.0


class ExpenseCategory(str, Enum):
    EMI = "EMI"
    FOOD = "Food"
    HOLIDAY_TRIP = "Holiday/Trip"
    HOUSING = "Housing"
    SHOPPING = "Shopping"
    TRAVEL = "Travel"
    FAMILY = "Family"
    CHARGES_FEES = "Charges/Fees"
    GROCERIES = "Groceries"
    HEALTH_BEAUTY = "Health/Beauty"
    ENTERTAINMENT = "Entertainment"
    CHARITY_GIFT = "Charity/Gift"
    EDUCATION = "Education"
    VEHICLE = "Vehicle"
    UNKNOWN = "Unknown"


class IncomeCategory(str, Enum):
    SALARY = "Salary"
    FREELANCE = "Freelance"
    BUSINESS = "Business"
    INVESTMENT = "Investment"
    RENTAL = "Rental"
    GIFT = "Gift"
    BONUS = "Bonus"
    PENSION = "Pension"
    DIVIDENDS = "Dividends"
    INTEREST = "Interest"
    OTHER = "Other"


_EXPENSE_ALIASES: dict[str, ExpenseCategory] = {
    "emi": ExpenseCategory.EMI,
    "food": ExpenseCategory.FOOD,
    "holiday/trip": ExpenseCategory.HOLIDAY_TRIP,
    "holiday": ExpenseCategory.HOLIDAY_TRIP,
    "trip": ExpenseCategory.HOLIDAY_TRIP,
    "housing": ExpenseCategory.HOUSING,
    "rent": ExpenseCategory.HOUSING,
    "shopping": ExpenseCategory.SHOPPING,
    "travel": ExpenseCategory.TRAVEL,
    "transport": ExpenseCategory.TRAVEL,
    "family": ExpenseCategory.FAMILY,
    "charges/fees": ExpenseCategory.CHARGES_FEES,
    "charges": ExpenseCategory.CHARGES_FEES,
    "fees": ExpenseCategory.CHARGES_FEES,
    "utilities": ExpenseCategory.CHARGES_FEES,
    "groceries": ExpenseCategory.GROCERIES,
    "health/beauty": ExpenseCategory.HEALTH_BEAUTY,
    "health": ExpenseCategory.HEALTH_BEAUTY,
    "beauty": ExpenseCategory.HEALTH_BEAUTY,
    "personal care": ExpenseCategory.HEALTH_BEAUTY,
    "entertainment": ExpenseCategory.ENTERTAINMENT,
    "charity/gift": ExpenseCategory.CHARITY_GIFT,
    "charity": ExpenseCategory.CHARITY_GIFT,
    "gift": ExpenseCategory.CHARITY_GIFT,
    "education": ExpenseCategory.EDUCATION,
    "vehicle": ExpenseCategory.VEHICLE,
}

_INCOME_ALIASES: dict[str, IncomeCategory] = {
    category.value.lower(): category for category in IncomeCategory
}


def normalize_category(value: str | None) -> str:
    return (value or "").strip().lower()


def _resolve(name: str | None, aliases: dict, fallback):
    key = normalize_category(name)
    if not key:
        return fallback

    # 1. Exact alias
    if key in aliases:
        return aliases[key]

    # 2. Fuzzy alias, for typos in stored data
    match = process.extractOne(key, aliases.keys(), scorer=fuzz.token_sort_ratio)
    if match:
        alias, score, _ = match
        if score >= FUZZY_THRESHOLD:
            return aliases[alias]
    return fallback


def resolve_expense_category(name: str | None) -> ExpenseCategory:
    return _resolve(name, _EXPENSE_ALIASES, ExpenseCategory.UNKNOWN)


def resolve_income_category(name: str | None) -> IncomeCategory:
    return _resolve(name, _INCOME_ALIASES, IncomeCategory.OTHER)
