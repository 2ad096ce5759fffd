from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .models import WeatherReport

SEVERITY_LEVELS = ('none', 'low', 'medium', 'high')

# position -> severity -> projection multiplier; DST gains from opponent miscues
WEATHER_MULTIPLIERS: Dict[str, Dict[str, float]] = {
    'QB': {'high': 0.85, 'medium': 0.92, 'low': 0.97, 'none': 1.0},
    'K': {'high': 0.75, 'medium': 0.88, 'low': 0.95, 'none': 1.0},
    'WR': {'high': 0.90, 'medium': 0.95, 'low': 0.98, 'none': 1.0},
    'TE': {'high': 0.90, 'medium': 0.95, 'low': 0.98, 'none': 1.0},
    'RB': {'high': 0.98, 'medium': 0.99, 'low': 1.0, 'none': 1.0},
    'DST': {'high': 1.05, 'medium': 1.02, 'low': 1.0, 'none': 1.0},
}


@dataclass(frozen=True)
class WeatherAdjustment:
    points: float
    multiplier: float = 1.0
    impact: str = 'none'
    conditions: Optional[str] = None

    @property
    def applied(self) -> bool:
        return self.multiplier != 1.0


def _upgrade(current: str, target: str) -> str:
    return target if SEVERITY_LEVELS.index(target) > SEVERITY_LEVELS.index(current) else current


def weather_severity(report: WeatherReport) -> Tuple[str, str]:
    """Severity tier and a short description of the conditions."""
    if report.is_dome:
        return 'none', 'Dome - no weather impact'
    level = 'none'
    factors: List[str] = []
    if report.wind_speed >= 20:
        level = 'high'
        factors.append(f"High winds ({report.wind_speed:g} mph)")
    elif report.wind_speed >= 15:
        level = _upgrade(level, 'medium')
        factors.append(f"Moderate winds ({report.wind_speed:g} mph)")
    if report.temperature <= 32:
        level = _upgrade(level, 'medium')
        factors.append(f"Freezing ({report.temperature:g}F)")
    elif report.temperature <= 40:
        level = _upgrade(level, 'low')
        factors.append(f"Cold ({report.temperature:g}F)")
    if report.precipitation >= 0.5:
        level = _upgrade(level, 'medium')
        factors.append(f"{round(report.precipitation * 100)}% chance of precipitation")
    elif report.precipitation >= 0.3:
        level = _upgrade(level, 'low')
        factors.append(f"{round(report.precipitation * 100)}% chance of precipitation")
    if report.condition in ('Snow', 'Thunderstorm'):
        level = 'high'
        factors.append(report.condition)
    if not factors:
        return 'none', 'Good conditions'
    return level, ', '.join(factors)


def apply_weather_adjustment(points: float, position: str, report: Optional[WeatherReport]) -> WeatherAdjustment:
    if report is None:
        return WeatherAdjustment(points=points)
    if report.is_dome:
        return WeatherAdjustment(points=points, conditions='Dome - no weather impact')
    level, description = weather_severity(report)
    if report.severity in SEVERITY_LEVELS:
        level = report.severity
    multiplier = WEATHER_MULTIPLIERS.get(position, {}).get(level, 1.0)
    return WeatherAdjustment(points=points * multiplier, multiplier=multiplier, impact=level, conditions=description)
