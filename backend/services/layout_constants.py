"""
Centralized layout constants: single source of truth for the constraint engine.

Exposes the fixed numbers every rule pass shares:
  - Snapping grids (drafting grid and structural alignment grid)
  - Zone membership per room type (social / service / private)
  - Wet-area membership for plumbing grouping
  - Zoning offsets, adjacency distance and alignment tolerances
  - Sanity bounds beyond which a rule becomes a conflict
  - Bedroom "couple" name markers

Also loads the optional rulebook overrides file (``SPEC_OVERRIDES_PATH``).
The values from that file are layered over the built-in rulebook defaults by
``specifications.load_house_specifications``.
"""

import json
import logging
from typing import Dict, Optional

from config import SPEC_OVERRIDES_PATH

logger = logging.getLogger(__name__)

# ===========================================================================
# LOAD RULEBOOK OVERRIDES FROM JSON
# ===========================================================================

_overrides_cache: Optional[Dict] = None


def get_rulebook_overrides(path: Optional[str] = None, reload: bool = False) -> Dict:
    """
    Read the deployment-wide rulebook overrides.

    A missing file is normal (built-in defaults apply). An unreadable or
    malformed file is logged and ignored.
    """
    global _overrides_cache
    if path is None and _overrides_cache is not None and not reload:
        return dict(_overrides_cache)

    target = path or SPEC_OVERRIDES_PATH
    overrides: Dict = {}
    try:
        with open(target, 'r') as f:
            data = json.load(f)
        if isinstance(data, dict):
            overrides = data
            logger.info(f"Loaded rulebook overrides from {target}")
        else:
            logger.warning(f"Ignoring {target}: expected a JSON object, got {type(data).__name__}")
    except FileNotFoundError:
        logger.debug(f"No rulebook overrides at {target}, using built-in defaults")
    except (OSError, ValueError) as e:
        logger.warning(f"Could not load rulebook overrides from {target}: {e}. Using built-in defaults.")

    if path is None:
        _overrides_cache = overrides
    return dict(overrides)


# ===========================================================================
# GRIDS
# ===========================================================================

GRID_SNAP = 0.05     # drafting grid for dimensions and positions (m)
ALIGN_GRID = 0.01    # structural alignment and final normalization grid (m)

# Final normalization floors
MIN_COORD = 0.1
MIN_DIMENSION = 0.5

# ===========================================================================
# ZONING
# ===========================================================================

ZONE_MAP = {
    'living':  'social',
    'other':   'social',
    'kitchen': 'service',
    'service': 'service',
    'garage':  'service',
    'bedroom': 'private',
    'bathroom': 'private',
}

WET_AREAS = ('kitchen', 'bathroom', 'service', 'garage')

ZONE_ORIGIN = (1.0, 1.0)
ZONE_STACK_GAP = 0.2       # between rooms inside a zone
ZONE_COLUMN_GAP = 0.5      # social column → service column
ZONE_PRIVATE_GAP = 0.4     # stacks → private row

# ===========================================================================
# ADJACENCY / GROUPING / ALIGNMENT
# ===========================================================================

KITCHEN_MAX_CENTER_DX = 2.0
KITCHEN_SOCIAL_GAP = 0.2
WET_AREA_STEP = 0.1
AXIS_MERGE_EPS = 0.12

# ===========================================================================
# WINDOWS
# ===========================================================================

WINDOW_MIN_LIGHT_AREA = 0.01
WINDOW_MIN_WIDTH = 0.5
WINDOW_SIDE_MARGIN = 0.2
WINDOW_ABS_MIN_WIDTH = 0.1
WINDOW_MIN_HEIGHT = 0.12
WINDOW_MAX_HEIGHT = 1.2
WINDOW_WIDTH_FACTOR = 1.5  # width ≈ sqrt(needed_area * factor)

# ===========================================================================
# SANITY BOUNDS (beyond these a rule is recorded as a conflict)
# ===========================================================================

MAX_CLEARANCE_DIMENSION = 6.0
MAX_FREE_WALL = 8.0

# ===========================================================================
# BEDROOM CLASSIFICATION
# ===========================================================================

# Name fragments that mark a double-occupancy bedroom (pt-BR and English)
COUPLE_MARKERS = ('casal', 'couple', 'master', 'suite', 'suíte')

CONFLICT_PREFIX = 'CONFLICT: '
