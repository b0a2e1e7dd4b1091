"""Schema and rendering constants.

Re-exports all constants for convenient importing:
    from protograph.constants import SCALAR_TYPES, EDGE_STYLES
"""

from protograph.constants.schema import *  # noqa: F403
from protograph.constants.render import *  # noqa: F403
