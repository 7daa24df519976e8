"""
Feltyper för export och ruttbearbetning
"""


class RouteExportError(Exception):
    """Basklass för fel vid GPX-export"""


class NoRouteDataError(RouteExportError):
    """Det finns inga punkter att exportera"""

    def __init__(self, message: str = "No route points to export. Please create a route first."):
        super().__init__(message)


class NumericDomainError(RouteExportError, ValueError):
    """Koordinat utanför giltigt intervall"""


class InvalidPaceError(RouteExportError, ValueError):
    """Tempot är negativt eller inte ett ändligt tal"""


class InvalidActivityError(RouteExportError, ValueError):
    """Okänd aktivitetstyp"""


class RoadSnapError(RuntimeError):
    """Vägfästning mot routingtjänsten misslyckades"""


class SnapInProgressError(RoadSnapError):
    """En vägfästning pågår redan"""


__all__ = [
    "RouteExportError",
    "NoRouteDataError",
    "NumericDomainError",
    "InvalidPaceError",
    "InvalidActivityError",
    "RoadSnapError",
    "SnapInProgressError",
]
