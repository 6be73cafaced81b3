from typing import Optional, Tuple
from urllib.parse import quote

import requests

NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"
USER_AGENT = "maxwil-bakery/1.0"


def parse_coordinates(latitude, longitude) -> Optional[Tuple[float, float]]:
    """Return (lat, lng) if both values are valid coordinates, else None."""
    try:
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError):
        return None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return lat, lng


def format_coordinates(lat: float, lng: float) -> str:
    return f"{lat:.6f}, {lng:.6f}"


def maps_enabled(settings) -> bool:
    return bool(settings.google_maps_api_key)


def reverse_geocode(lat: float, lng: float, session=None, timeout: float = 5) -> str:
    """Human readable address for a point, or the raw coordinates on any failure."""
    fallback = f"{lat}, {lng}"
    http = session or requests
    try:
        response = http.get(
            NOMINATIM_REVERSE_URL,
            params={"format": "json", "lat": lat, "lon": lng, "zoom": 18, "addressdetails": 1},
            headers={"User-Agent": USER_AGENT},
            timeout=timeout,
        )
        response.raise_for_status()
        return response.json().get("display_name") or fallback
    except (requests.RequestException, ValueError) as e:
        print(f"Reverse geocoding failed: {e}")
        return fallback


def directions_url(order: dict) -> str:
    """Google Maps link for the driver: directions when the order has a pin."""
    coordinates = parse_coordinates(order.get("deliveryLatitude"), order.get("deliveryLongitude"))
    if coordinates:
        lat, lng = coordinates
        return f"https://www.google.com/maps/dir/?api=1&destination={lat},{lng}&travelmode=driving"
    return f"https://www.google.com/maps/search/{quote(order.get('deliveryAddress') or '')}"
