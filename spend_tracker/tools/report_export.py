"""Dashboard export to tabular formats"""

from pathlib import Path
from typing import Union

import pandas as pd

from spend_tracker.models import DashboardData
from spend_tracker.utils.formatting import format_currency, format_percentage, status_label

BASE_COLUMNS = [
    'Vendor', 'Category', 'Prior Month', 'Current Budget', 'Current Actual', 'Variance', 'Variance %', 'Status'
]
YTD_COLUMNS = ['YTD Budget', 'YTD Actual', 'YTD Variance']


def dashboard_to_dataframe(data: DashboardData, include_ytd: bool = False) -> pd.DataFrame:
    """
    Known-tooling rows as a DataFrame, amounts rounded to cents

    Args:
        data: Dashboard to export
        include_ytd: Append YTD budget/actual/variance columns

    Returns:
        DataFrame with one row per budgeted vendor
    """
    records = []
    for row in data.known_tooling:
        record = {
            'Vendor': row.vendor.name,
            'Category': row.vendor.category,
            'Prior Month': round(row.prior_month_actual, 2),
            'Current Budget': round(row.current_month_budget, 2),
            'Current Actual': round(row.current_month_actual, 2),
            'Variance': round(row.variance, 2),
            'Variance %': round(row.variance_percent, 1),
            'Status': row.status.value,
        }
        if include_ytd:
            record.update({
                'YTD Budget': round(row.ytd_budget, 2),
                'YTD Actual': round(row.ytd_actual, 2),
                'YTD Variance': round(row.ytd_variance, 2),
            })
        records.append(record)

    columns = BASE_COLUMNS + (YTD_COLUMNS if include_ytd else [])
    return pd.DataFrame(records, columns=columns)


def export_dashboard_csv(data: DashboardData, output_path: Union[str, Path], include_ytd: bool = False) -> Path:
    """Write the known-tooling table to CSV and return the path written"""
    path = Path(output_path)
    dashboard_to_dataframe(data, include_ytd=include_ytd).to_csv(path, index=False, float_format='%.2f')
    return path


def render_dashboard_table(data: DashboardData) -> str:
    """Human-readable report for the terminal"""
    known = pd.DataFrame(
        [
            {
                'Vendor': row.vendor.name,
                'Budget': format_currency(row.current_month_budget),
                'Actual': format_currency(row.current_month_actual),
                'Variance': format_currency(row.variance),
                'Variance %': format_percentage(row.variance_percent),
                'Status': status_label(row.status),
            }
            for row in data.known_tooling
        ]
    )

    lines = [f"Tooling spend for {data.month}", ""]
    lines.append(known.to_string(index=False) if not known.empty else "No budgeted vendors")

    if data.non_budgeted_tooling:
        lines += ["", "Non-budgeted tooling:"]
        for row in data.non_budgeted_tooling:
            suggestion = ""
            if row.suggested_vendor_match is not None:
                suggestion = f"  (maybe {row.suggested_vendor_match.name}, {row.match_confidence:.0%})"
            lines.append(
                f"  {row.merchant_name}: {format_currency(row.current_month_actual)}"
                f" across {row.transaction_count} transaction(s){suggestion}"
            )

    if data.unused_subscriptions:
        lines += ["", "Unused subscriptions:"]
        lines += [f"  {vendor.name} ({format_currency(vendor.monthly_budget)}/mo)" for vendor in data.unused_subscriptions]

    lines += [
        "",
        f"Total budget:   {format_currency(data.total_budget)}",
        f"Total actual:   {format_currency(data.total_actual)}",
        f"Total variance: {format_currency(data.total_variance)}",
    ]
    return "\n".join(lines)
