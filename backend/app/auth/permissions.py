"""Granular permission system for BananaTrack RBAC.

Design:
  - Each role has a set of DEFAULT permissions (defined here, not in DB).
  - `resolve_permissions(role)` computes the effective permission set.
  - The effective set is embedded in the JWT so most checks are token-only;
    tokens without a permissions claim fall back to the role defaults.

Permission naming: `<resource>.<action>`
  Resources: farm, inspection, batch, harvest, dispatch, costs,
             transport, inventory, vendor_ledger, sales, reports
  Actions:   read, write, approve, receive
"""

from __future__ import annotations


# ── All known permissions ───────────────────────────────────

ALL_PERMISSIONS: set[str] = {
    # Farms and inspections
    "farm.read",
    "farm.write",
    "inspection.write",       # submit an inspection
    "inspection.approve",     # approve / reject → creates the batch

    # Batch lifecycle
    "batch.read",
    "batch.write",            # status transitions

    # Harvest
    "harvest.read",
    "harvest.write",          # daily reports

    # Dispatch
    "dispatch.read",
    "dispatch.write",         # create gate passes
    "dispatch.receive",       # receive gate passes at the warehouse

    # Costing (strictly restricted)
    "costs.read",
    "costs.write",            # force a roll-up
    "transport.write",

    # Inventory
    "inventory.read",
    "inventory.write",

    # Vendor ledger
    "vendor_ledger.read",
    "vendor_ledger.write",

    # Sales and reports (admin and manager only)
    "sales.read",
    "sales.write",            # create sales, record payments
    "reports.read",           # profitability
}


# ── Role → default permissions ──────────────────────────────

ROLE_DEFAULTS: dict[str, set[str]] = {
    "super_admin": ALL_PERMISSIONS.copy(),

    "manager": ALL_PERMISSIONS.copy(),

    "vendor": {
        "farm.read",
        "inspection.write",
        "batch.read", "batch.write",
        "harvest.read", "harvest.write",
        "dispatch.read", "dispatch.write",
        "costs.read",
        "inventory.read",
    },

    "store_keeper": {
        "farm.read",
        "batch.read",
        "harvest.read",
        "dispatch.read", "dispatch.write", "dispatch.receive",
        "costs.read",
        "inventory.read", "inventory.write",
    },
}


# ── Resolution ──────────────────────────────────────────────

def resolve_permissions(role: str) -> list[str]:
    """Return the role's effective permissions as a sorted list (stable JWT claims)."""
    return sorted(ROLE_DEFAULTS.get(role, set()))


def has_permission(user_permissions: list[str] | set[str], required: str) -> bool:
    """Check whether a permission set satisfies a requirement."""
    return required in user_permissions
