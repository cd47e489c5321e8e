"""Domain synchronizers — one cached, live list per table.

    ChoresSynchronizer        chores (optionally one player's)
    EventsSynchronizer        calendar events (optionally one player's)
    HousePointsSynchronizer   house leaderboard, always sorted by points
    WellnessSynchronizer      newest wellness check-ins across all players
"""

from housesync.sync.chores import ChoresSynchronizer
from housesync.sync.events import EventsSynchronizer
from housesync.sync.house_points import HousePointsSynchronizer
from housesync.sync.wellness import WellnessSynchronizer

__all__ = [
    "ChoresSynchronizer",
    "EventsSynchronizer",
    "HousePointsSynchronizer",
    "WellnessSynchronizer",
]
