"""
Database entity models.

This package contains all database entity models organized by business domain.

Modules:
- accounts: Country accounts (tenants), users, login sessions and API keys
- hip: HIP hazard taxonomy (type, cluster, hazard)
- sectors: Sector tree
- events: Shared event identity, hazardous events, disaster events
- disaster_records: Disaster records and their sector relations
- losses / damages / disruptions: Sector level effects of a record
- human_effects: Disaggregated human effects and category presence
- assets / units / divisions: Reference data
- audit_logs: Change history
"""

from . import (
    accounts,
    assets,
    audit_logs,
    damages,
    disaster_records,
    disruptions,
    divisions,
    events,
    hip,
    human_effects,
    losses,
    sectors,
    units,
)

__all__ = [
    "accounts",
    "assets",
    "audit_logs",
    "damages",
    "disaster_records",
    "disruptions",
    "divisions",
    "events",
    "hip",
    "human_effects",
    "losses",
    "sectors",
    "units",
]
