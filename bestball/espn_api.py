import requests
from typing import Any, Dict, List, Optional

from .models import BestBallError

BASE = 'https://site.api.espn.com/apis/site/v2/sports/football/nfl'
# postseason
PLAYOFF_SEASON_TYPE = 3


class ESPNAPIError(BestBallError):
    pass


class ESPNClient:
    def __init__(self, base_url: str = BASE, timeout: int = 10):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        resp = requests.get(url, params=params, timeout=self.timeout)
        if not resp.ok:
            raise ESPNAPIError(f"GET {url} failed: {resp.status_code} {resp.text}")
        return resp.json()

    def get_summary(self, event_id: str) -> Dict[str, Any]:
        """Game summary: boxscore tables, scoring plays and the header."""
        return self._get('/summary', params={'event': event_id})

    def get_scoreboard(self, week: int, season_type: int = PLAYOFF_SEASON_TYPE) -> Dict[str, Any]:
        return self._get('/scoreboard', params={'seasontype': season_type, 'week': week})

    def get_events(self, week: int) -> List[Dict[str, Any]]:
        return self.get_scoreboard(week).get('events') or []
