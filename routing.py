"""
Vägfästning av ritade rutter, högst en förfrågan åt gången
"""

import logging
import threading
from typing import List, Optional, Sequence

from errors import SnapInProgressError
from models import RoutePoint
from routing_providers import OSRMProvider, RoadSnapProvider

logger = logging.getLogger(__name__)

_snap_lock = threading.Lock()

def snapping_in_progress() -> bool:
    """True medan en vägfästning pågår"""
    return _snap_lock.locked()

def snap_route(
    points: Sequence[RoutePoint],
    activity: str = "run",
    provider: Optional[RoadSnapProvider] = None
) -> List[RoutePoint]:
    """
    Ersätt ritade punkter med en väganpassad punktlista

    Anroparen behåller sin ursprungliga lista om något går fel; resultatet
    ersätter den i sin helhet och slås aldrig ihop punkt för punkt.

    Args:
        points: Ritade punkter
        activity: "run" eller "bike"
        provider: Routing-provider, OSRM om inget anges

    Returns:
        Väganpassade punkter

    Raises:
        SnapInProgressError: Om en annan vägfästning redan pågår
        RoadSnapError: Om providern misslyckas
    """
    if not _snap_lock.acquire(blocking=False):
        raise SnapInProgressError("Road snapping is already in progress")

    try:
        provider = provider or OSRMProvider()
        snapped = provider.snap(points, activity)
        logger.info(
            "Vägfäste %d punkter till %d punkter via %s",
            len(points), len(snapped), getattr(provider, "name", type(provider).__name__)
        )
        return snapped
    finally:
        _snap_lock.release()
