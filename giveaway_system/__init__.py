"""
Giveaway System Package
Reaction-based timed giveaways with automatic and manual resolution
"""

__version__ = "1.0.0"

# Export main components
from .draw import Outcome, ResolutionEngine
from .errors import (
    GiveawayError,
    IdentifierExhausted,
    InvalidDraft,
    NotFound,
    PersistenceError,
    PlatformError,
    WrongScope,
)
from .manager import GiveawayManager
from .membership import Joined, Left, MembershipTracker
from .models import Drawing, DrawingDraft
from .persistence import DatabaseSnapshotStore, JsonFileSnapshotStore, create_snapshot_store
from .scheduler import GiveawayScheduler, setup_giveaway_scheduler
from .store import DrawingStore

__all__ = [
    'Drawing',
    'DrawingDraft',
    'DrawingStore',
    'GiveawayManager',
    'GiveawayScheduler',
    'setup_giveaway_scheduler',
    'MembershipTracker',
    'Joined',
    'Left',
    'ResolutionEngine',
    'Outcome',
    'JsonFileSnapshotStore',
    'DatabaseSnapshotStore',
    'create_snapshot_store',
    'GiveawayError',
    'InvalidDraft',
    'NotFound',
    'WrongScope',
    'IdentifierExhausted',
    'PersistenceError',
    'PlatformError',
]
