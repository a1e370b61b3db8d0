"""
Amazon Connect analytics tables shared from the producer data lake.

Every table is exposed in the consumer account through a resource link
named ``<table>_link``.
"""

from typing import Dict, List, Optional

from .config import config

TABLE_CATEGORIES: Dict[str, List[str]] = {
    "Agent & Queue Statistics": [
        "agent_queue_statistic_record",
        "agent_statistic_record",
        "agent_metrics",
        "contact_statistic_record",
        "queue_metrics",
    ],
    "Contact Records": [
        "contacts_record",
        "contacts",
        "contact_flow_events",
        "contact_evaluation_record",
    ],
    "Contact Lens": [
        "contact_lens_conversational_analytics",
    ],
    "Bot Analytics": [
        "bot_conversations",
        "bot_intents",
        "bot_slots",
    ],
    "Configuration": [
        "agent_hierarchy_groups",
        "routing_profiles",
        "users",
    ],
    "Forecasting": [
        "forecast_groups",
        "long_term_forecasts",
        "short_term_forecasts",
        "intraday_forecasts",
    ],
    "Outbound Campaigns": [
        "outbound_campaign_events",
    ],
    "Staff Scheduling": [
        "staff_scheduling_profile",
        "shift_activities",
        "shift_profiles",
        "staffing_groups",
        "staffing_group_forecast_groups",
        "staffing_group_supervisors",
        "staff_shifts",
        "staff_shift_activities",
        "staff_timeoff_balance_changes",
        "staff_timeoffs",
        "staff_timeoff_intervals",
    ],
}

CONNECT_TABLES: List[str] = [table for tables in TABLE_CATEGORIES.values() for table in tables]

# Tables the export Lambda reads through; these get SELECT on the producer side
KEY_TABLES: List[str] = [
    "users",
    "contacts",
    "agent_metrics",
    "queue_metrics",
    "agent_hierarchy_groups",
    "routing_profiles",
    "contacts_record",
    "contact_flow_events",
    "contact_statistic_record",
    "agent_statistic_record",
]

VERIFY_TABLES: List[str] = ["users", "contacts", "agent_metrics", "queue_metrics"]


def link_name(table: str, suffix: Optional[str] = None) -> str:
    """Return the consumer-side resource link name for a producer table."""
    if suffix is None:
        suffix = config.catalog.link_suffix
    return f"{table}{suffix}"


def table_from_link(name: str, suffix: Optional[str] = None) -> Optional[str]:
    """Return the producer table name for a link name, None if not a link name."""
    if suffix is None:
        suffix = config.catalog.link_suffix
    if not name.endswith(suffix) or name == suffix:
        return None
    return name[: -len(suffix)]


def category_of(table: str) -> Optional[str]:
    """Return the category a table belongs to."""
    for category, tables in TABLE_CATEGORIES.items():
        if table in tables:
            return category
    return None
