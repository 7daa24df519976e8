"""
Platssökning för att flytta kartan till en adress
"""

import logging
import streamlit as st
import requests
import time
from typing import List
from config import (
    CACHE_TTL,
    MIN_SEARCH_LENGTH,
    NOMINATIM_BASE_URL,
    SEARCH_LIMIT,
    USER_AGENT,
)
from models import LocationResult

logger = logging.getLogger(__name__)

@st.cache_data(ttl=CACHE_TTL)
def _fetch_locations(query: str, limit: int) -> List[LocationResult]:
    # Fel kastas vidare så att de aldrig hamnar i cachen
    url = f"{NOMINATIM_BASE_URL}/search"
    params = {
        "q": query,
        "format": "json",
        "limit": limit,
        "addressdetails": 1
    }
    headers = {"User-Agent": USER_AGENT}

    response = requests.get(url, params=params, headers=headers, timeout=10)
    time.sleep(1)  # Rate limiting för Nominatim
    response.raise_for_status()
    data = response.json()

    results = []
    for item in data:
        try:
            results.append(LocationResult(
                lat=float(item["lat"]),
                lng=float(item["lon"]),
                display_name=item.get("display_name", ""),
                place_type=item.get("type")
            ))
        except (KeyError, TypeError, ValueError):
            logger.debug("Hoppar över ogiltig träff: %r", item)

    return results

def search_locations(query: str, limit: int = SEARCH_LIMIT) -> List[LocationResult]:
    """
    Sök platser via Nominatim

    Lyckade svar cachas i CACHE_TTL sekunder. Misslyckade anrop cachas
    inte, så samma sökning görs om nästa gång.

    Args:
        query: Fritext, minst MIN_SEARCH_LENGTH tecken
        limit: Max antal träffar

    Returns:
        Lista med LocationResult, tom vid fel eller för kort sökning
    """
    if len(query.strip()) < MIN_SEARCH_LENGTH:
        return []

    try:
        return _fetch_locations(query, limit)
    except (requests.RequestException, ValueError) as e:
        logger.warning("Geokodningsfel för %r: %s", query, e)
        return []
