"""Static geospatial index for ASOS station discovery.

IEM publishes ASOS stations as one network per state (``OK_ASOS``,
``KS_ASOS``...).  Given a point and a radius we find the state networks
whose bounding box overlaps the search box, so only those need fetching.
"""

from __future__ import annotations

import math

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE = 111.0

# Approximate state bounding boxes: (min_lat, max_lat, min_lon, max_lon).
STATE_BOUNDS: dict[str, tuple[float, float, float, float]] = {
    "AL": (30.2, 35.0, -88.5, -84.9),
    "AR": (33.0, 36.5, -94.6, -89.6),
    "AZ": (31.3, 37.0, -114.8, -109.0),
    "CA": (32.5, 42.0, -124.4, -114.1),
    "CO": (37.0, 41.0, -109.1, -102.0),
    "CT": (41.0, 42.1, -73.7, -71.8),
    "DE": (38.5, 39.8, -75.8, -75.0),
    "FL": (24.5, 31.0, -87.6, -80.0),
    "GA": (30.4, 35.0, -85.6, -80.8),
    "IA": (40.4, 43.5, -96.6, -90.1),
    "ID": (42.0, 49.0, -117.2, -111.0),
    "IL": (37.0, 42.5, -91.5, -87.5),
    "IN": (37.8, 41.8, -88.1, -84.8),
    "KS": (37.0, 40.0, -102.1, -94.6),
    "KY": (36.5, 39.1, -89.6, -81.9),
    "LA": (29.0, 33.0, -94.0, -89.0),
    "MA": (41.2, 42.9, -73.5, -69.9),
    "MD": (38.0, 39.7, -79.5, -75.0),
    "ME": (43.1, 47.5, -71.1, -67.0),
    "MI": (41.7, 48.3, -90.4, -82.4),
    "MN": (43.5, 49.4, -97.2, -89.5),
    "MO": (36.0, 40.6, -95.8, -89.1),
    "MS": (30.2, 35.0, -91.7, -88.1),
    "MT": (44.4, 49.0, -116.0, -104.0),
    "NC": (33.8, 36.6, -84.3, -75.5),
    "ND": (45.9, 49.0, -104.0, -96.6),
    "NE": (40.0, 43.0, -104.1, -95.3),
    "NH": (42.7, 45.3, -72.6, -70.7),
    "NJ": (38.9, 41.4, -75.6, -73.9),
    "NM": (31.3, 37.0, -109.0, -103.0),
    "NV": (35.0, 42.0, -120.0, -114.0),
    "NY": (40.5, 45.0, -79.8, -71.9),
    "OH": (38.4, 42.0, -84.8, -80.5),
    "OK": (33.6, 37.0, -103.0, -94.4),
    "OR": (42.0, 46.3, -124.6, -116.5),
    "PA": (39.7, 42.3, -80.5, -74.7),
    "RI": (41.1, 42.0, -71.9, -71.1),
    "SC": (32.0, 35.2, -83.4, -78.5),
    "SD": (42.5, 46.0, -104.1, -96.4),
    "TN": (35.0, 36.7, -90.3, -81.6),
    "TX": (25.8, 36.5, -106.6, -93.5),
    "UT": (37.0, 42.0, -114.1, -109.0),
    "VA": (36.5, 39.5, -83.7, -75.2),
    "VT": (42.7, 45.0, -73.4, -71.5),
    "WA": (45.5, 49.0, -124.8, -116.9),
    "WI": (42.5, 47.1, -92.9, -86.8),
    "WV": (37.2, 40.6, -82.6, -77.7),
    "WY": (41.0, 45.0, -111.1, -104.1),
}


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in km."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = math.sin(d_lat / 2) ** 2 + (
        math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def search_box(lat: float, lon: float, radius_km: float) -> tuple[float, float, float, float]:
    """Bounding box ``(min_lat, max_lat, min_lon, max_lon)`` around a point."""
    d_lat = radius_km / KM_PER_DEGREE
    lon_scale = max(0.2, math.cos(math.radians(lat)))
    d_lon = radius_km / (KM_PER_DEGREE * lon_scale)
    return lat - d_lat, lat + d_lat, lon - d_lon, lon + d_lon


def overlapping_networks(lat: float, lon: float, radius_km: float) -> list[str]:
    """ASOS network ids whose state box overlaps the search box, sorted."""
    min_lat, max_lat, min_lon, max_lon = search_box(lat, lon, radius_km)
    networks: list[str] = []
    for state, (s_min_lat, s_max_lat, s_min_lon, s_max_lon) in sorted(STATE_BOUNDS.items()):
        if max_lat >= s_min_lat and min_lat <= s_max_lat and max_lon >= s_min_lon and min_lon <= s_max_lon:
            networks.append(f"{state}_ASOS")
    return networks
