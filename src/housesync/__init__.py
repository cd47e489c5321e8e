"""housesync — real-time synchronization for shared-house dashboards.

Keeps chores, events, house-point standings and wellness check-ins in sync
with the backend's change stream so that staff and residents see each
other's updates within seconds.
"""

__version__ = "0.1.0"
