"""In-memory demo dataset — serves the fetch contract without a backend.

Used when demo mode is active: synchronizers load once from here and never
receive live updates.
"""

import copy
from typing import Optional

from housesync.data.service import DataService, events_for_player

DEMO_DATA = {
    "houses": [
        {"id": "h1", "name": "Widdersdorf 1", "total_points": 945, "color": "#EF4444"},
        {"id": "h2", "name": "Widdersdorf 2", "total_points": 920, "color": "#3B82F6"},
        {"id": "h3", "name": "Widdersdorf 3", "total_points": 885, "color": "#22C55E"},
    ],
    "players": [
        {"id": "p1", "first_name": "Max", "last_name": "Finkgräfe", "house_id": "h1", "points": 250},
        {"id": "p2", "first_name": "Tim", "last_name": "Lemperle", "house_id": "h2", "points": 240},
        {"id": "p3", "first_name": "Linton", "last_name": "Maina", "house_id": "h3", "points": 230},
        {"id": "p4", "first_name": "Florian", "last_name": "Kainz", "house_id": "h1", "points": 220},
    ],
    "chores": [
        {
            "id": "c1",
            "title": "Clean kitchen",
            "house_id": "h1",
            "assigned_to": "p1",
            "status": "pending",
            "points": 15,
            "deadline": "2025-01-10",
        },
        {
            "id": "c2",
            "title": "Take out trash",
            "house_id": "h2",
            "assigned_to": "p2",
            "status": "completed",
            "points": 5,
            "deadline": "2025-01-11",
        },
        {
            "id": "c3",
            "title": "Vacuum common room",
            "house_id": "h1",
            "assigned_to": "p4",
            "status": "pending",
            "points": 10,
            "deadline": None,
        },
    ],
    "events": [
        {"id": "e1", "title": "Team training", "type": "training", "start_time": "2025-01-10T09:00:00+00:00"},
        {"id": "e2", "title": "House meeting", "type": "meeting", "start_time": "2025-01-11T18:00:00+00:00"},
        {"id": "e3", "title": "Physio check", "type": "medical", "start_time": "2025-01-12T10:00:00+00:00"},
    ],
    "event_attendees": [
        {"id": "a1", "event_id": "e3", "player_id": "p2", "status": "pending"},
    ],
    "wellness_logs": [
        {
            "id": "w1",
            "player_id": "p1",
            "date": "2025-01-09",
            "created_at": "2025-01-09T07:30:00+00:00",
            "sleep_hours": 8,
            "sleep_quality": 4,
            "energy_level": 4,
            "muscle_soreness": 2,
            "stress_level": 2,
            "mood": "good",
        },
        {
            "id": "w2",
            "player_id": "p2",
            "date": "2025-01-09",
            "created_at": "2025-01-09T08:10:00+00:00",
            "sleep_hours": 5,
            "sleep_quality": 2,
            "energy_level": 2,
            "muscle_soreness": 4,
            "stress_level": 3,
            "mood": "poor",
        },
    ],
}


class DemoDataService(DataService):
    def __init__(self, data: Optional[dict] = None):
        self._data = copy.deepcopy(data if data is not None else DEMO_DATA)

    def _rows(self, key: str) -> list[dict]:
        return copy.deepcopy(self._data.get(key, []))

    async def get_chores(self) -> list[dict]:
        return self._rows("chores")

    async def get_events(self) -> list[dict]:
        return self._rows("events")

    async def get_player_events(self, player_id) -> list[dict]:
        return events_for_player(self._rows("events"), self._rows("event_attendees"), player_id)

    async def get_houses(self) -> list[dict]:
        return sorted(self._rows("houses"), key=lambda h: h.get("total_points", 0), reverse=True)

    async def get_players(self) -> list[dict]:
        return self._rows("players")

    async def get_wellness_logs(self, player_id, limit: int = 30) -> list[dict]:
        logs = [w for w in self._rows("wellness_logs") if w.get("player_id") == player_id]
        logs.sort(key=lambda w: w.get("date") or "", reverse=True)
        return logs[:limit]
