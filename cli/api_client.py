"""REST API client for nihongo server."""

import requests


class NihongoAPIClient:
    """Client for communicating with the nihongo REST API."""

    def __init__(self, base_url: str = "http://localhost:8000"):
        self.base_url = base_url.rstrip('/')
        self.session = requests.Session()

    def _get(self, endpoint: str, params: dict = None) -> dict:
        """Make a GET request."""
        response = self.session.get(f"{self.base_url}{endpoint}", params=params or {})
        response.raise_for_status()
        return response.json()

    def _post(self, endpoint: str, data: dict = None) -> dict:
        """Make a POST request."""
        response = self.session.post(f"{self.base_url}{endpoint}", json=data or {})
        response.raise_for_status()
        return response.json()

    def health_check(self) -> dict:
        """Check if the server is running."""
        response = self.session.get(f"{self.base_url}/")
        response.raise_for_status()
        return response.json()

    def get_profile(self) -> dict:
        return self._get("/api/profile")

    def set_display_name(self, name: str) -> dict:
        return self._post("/api/profile", {'display_name': name})

    def get_rows(self, category: str) -> dict:
        """Get selectable character rows for a category."""
        return self._get(f"/api/rows/{category}")

    def get_session(self) -> dict:
        """Get the current session snapshot."""
        return self._get("/api/session")

    def start_session(self, category: str, rows: list[str], difficulty: str,
                      is_endless: bool = False, topic: str = None) -> dict:
        """Generate words and start a session."""
        return self._post("/api/session/start", {
            'category': category,
            'rows': rows,
            'difficulty': difficulty,
            'is_endless': is_endless,
            'topic': topic
        })

    def start_review(self, difficulty: str = 'Medium') -> dict:
        """Start a review of every due item."""
        return self._post("/api/session/review", {'difficulty': difficulty})

    def submit_answer(self, answer: str) -> dict:
        return self._post("/api/session/answer", {'answer': answer})

    def finish_session(self) -> dict:
        return self._post("/api/session/finish")

    def exit_session(self) -> dict:
        return self._post("/api/session/exit")

    def get_due(self) -> dict:
        return self._get("/api/srs/due")

    def get_insights(self) -> dict:
        return self._get("/api/insights")

    def get_achievements(self) -> dict:
        return self._get("/api/achievements")

    def acknowledge_achievements(self) -> dict:
        """Fetch and clear unlock notifications not yet shown."""
        return self._post("/api/achievements/seen")

    def get_history(self, limit: int = 10) -> dict:
        return self._get("/api/history", {'limit': limit})
