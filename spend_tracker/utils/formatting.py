"""Display helpers for report output"""

from spend_tracker.constants import SpendStatus

STATUS_LABELS = {
    SpendStatus.OVER_BUDGET: "Over Budget",
    SpendStatus.UNDER_BUDGET: "Under Budget",
    SpendStatus.ON_TARGET: "On Target",
    SpendStatus.NO_SPEND: "No Spend",
}


def format_currency(amount: float) -> str:
    """Format an amount as USD, e.g. -1234.5 -> -$1,234.50"""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_percentage(value: float) -> str:
    """Signed percentage with one decimal, e.g. 20 -> +20.0%"""
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.1f}%"


def status_label(status) -> str:
    try:
        return STATUS_LABELS[SpendStatus(status)]
    except ValueError:
        return "Unknown"
