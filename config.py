"""
config.py
Configuration and constants for the ACI distribution model
"""

from typing import Callable, Optional
import logging

from models import DistributionConfig

logger = logging.getLogger(__name__)


# ============================================================
# DEFAULT SETTINGS
# ============================================================
DEFAULT_FIXED_SHARE = 0.5
DEFAULT_RCP_SHARE = 0.25
DEFAULT_PROJECT_SHARE = 0.25
DEFAULT_MANAGER_WEIGHT = 1.5

DEFAULT_MEETING_DURATION = 60  # minutes
DEFAULT_PROJECT_WEIGHT = 1.0
DEFAULT_PARTICIPATION_WEIGHT = 1.0

# Only this revenue category feeds the distributable pool
ACI_CATEGORY = "ACI"
ACTIVE_STATUS = "active"

# ============================================================
# SETTING KEYS
# ============================================================

# Primary key first, then legacy aliases. First key present wins.
SETTING_KEYS = {
    "fixed_share": ("fixed_revenue_share",),
    "rcp_share": ("rcp_share", "rcp_attendance_weight"),
    "project_share": ("project_share", "project_contribution_weight"),
    "manager_weight": ("aci_manager_weight", "manager_weight"),
}

# Rows seeded into an empty settings table
DEFAULT_SETTINGS = [
    {"key": "fixed_revenue_share", "value": "0.5", "category": "distribution",
     "description": "Part fixe des revenus"},
    {"key": "rcp_share", "value": "0.25", "category": "distribution",
     "description": "Part des revenus attribuée aux présences RCP"},
    {"key": "project_share", "value": "0.25", "category": "distribution",
     "description": "Part des revenus attribuée aux projets"},
    {"key": "aci_manager_weight", "value": "1.5", "category": "distribution",
     "description": "Coefficient de pondération pour les gérants"},
]


# ============================================================
# SETTING RESOLUTION
# ============================================================

def parse_setting(raw: Optional[str], default: float, as_share: bool = False) -> float:
    """Parse a stored setting string.

    Missing or unparsable values fall back to ``default``.  Share settings
    entered as percentages (2 and above, e.g. "50") are normalised to
    decimals.  A share between 1 and 2 is ambiguous and kept as stored.
    """
    if raw is None:
        return default
    try:
        value = float(str(raw).strip().replace(",", "."))
    except ValueError:
        return default
    if value != value:  # NaN
        return default
    if as_share and value >= 2.0:
        value = value / 100.0
    elif as_share and value > 1.0:
        logger.warning(f"Share setting {raw!r} is above 1 but below 2, used as stored")
    return value


def lookup_setting(get_setting: Callable[[str], Optional[str]], name: str) -> Optional[str]:
    """Return the raw value for a logical setting name, checking aliases in order."""
    for key in SETTING_KEYS[name]:
        raw = get_setting(key)
        if raw is not None and str(raw).strip() != "":
            return raw
    return None


def resolve_distribution_config(get_setting: Callable[[str], Optional[str]]) -> DistributionConfig:
    """Read every distribution setting once and apply defaults.

    Args:
        get_setting: callable returning the stored string for a key, or None

    Returns:
        Frozen DistributionConfig used by all three partitions
    """
    return DistributionConfig(
        fixed_share=parse_setting(lookup_setting(get_setting, "fixed_share"),
                                  DEFAULT_FIXED_SHARE, as_share=True),
        rcp_share=parse_setting(lookup_setting(get_setting, "rcp_share"),
                                DEFAULT_RCP_SHARE, as_share=True),
        project_share=parse_setting(lookup_setting(get_setting, "project_share"),
                                    DEFAULT_PROJECT_SHARE, as_share=True),
        manager_weight=parse_setting(lookup_setting(get_setting, "manager_weight"),
                                     DEFAULT_MANAGER_WEIGHT),
    )
