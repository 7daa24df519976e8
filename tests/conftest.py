"""Global pytest fixtures & helpers.

Adds project root to path and provides route builders shared by the
geometry, export and routing tests.
"""
from __future__ import annotations

import json
import math
import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from config import EARTH_RADIUS_KM
from models import RoutePoint

START_MS = 1_700_000_000_000  # 2023-11-14T22:13:20.000Z


# --- Factory helpers -------------------------------------------------
def make_points(coords, start_ms=START_MS):
    return [RoutePoint(lat=lat, lng=lng, timestamp=start_ms + i) for i, (lat, lng) in enumerate(coords)]


def equator_points(count, spacing_km, start_ms=START_MS):
    """Points along the equator heading east, spacing_km apart."""
    step = math.degrees(spacing_km / EARTH_RADIUS_KM)
    return make_points([(0.0, i * step) for i in range(count)], start_ms)


class FakeResp:
    """Minimal fake response matching needed parts of requests.Response."""

    def __init__(self, status_code=200, data=None):
        self.status_code = status_code
        self._data = data if data is not None else []

    def json(self):
        if isinstance(self._data, Exception):
            raise self._data
        return self._data

    @property
    def text(self):
        return json.dumps(self._data)

    def raise_for_status(self):
        if 400 <= self.status_code:
            import requests

            raise requests.exceptions.HTTPError(response=self)


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def one_km_points():
    # ~1 km apart at the equator
    return make_points([(0.0, 0.0), (0.0, 0.008983)])


@pytest.fixture
def paris_points():
    return make_points([
        (48.8566, 2.3522),
        (48.8584, 2.2945),
        (48.8606, 2.3376),
        (48.8530, 2.3499),
    ])
