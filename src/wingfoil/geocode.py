# wingfoil/geocode.py
"""
Reverse geocoding of a session's start point.

Geocoders are passed explicitly to whoever needs a place name; nothing here
is a module-level singleton and the analysis engine never imports it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol

import requests

from wingfoil.config import GeocodeConfig
from wingfoil.errors import GeocodeError


class Geocoder(Protocol):
    def reverse(self, lat: float, lon: float) -> dict[str, Any]:
        """Return the provider's response for (lat, lon); must carry an 'address' dict."""
        ...


@dataclass
class NominatimGeocoder:
    """OpenStreetMap Nominatim reverse lookup (format=jsonv2)."""

    base_url: str = GeocodeConfig.base_url
    user_agent: str = GeocodeConfig.user_agent
    timeout_s: float = GeocodeConfig.timeout_s
    session: Optional[requests.Session] = None

    @classmethod
    def from_config(cls, cfg: GeocodeConfig, session: Optional[requests.Session] = None) -> "NominatimGeocoder":
        return cls(
            base_url=cfg.base_url,
            user_agent=cfg.user_agent,
            timeout_s=cfg.timeout_s,
            session=session,
        )

    def reverse(self, lat: float, lon: float) -> dict[str, Any]:
        http = self.session or requests
        try:
            resp = http.get(
                self.base_url,
                params={"format": "jsonv2", "lat": lat, "lon": lon},
                # Nominatim usage policy requires an identifying User-Agent
                headers={"User-Agent": self.user_agent, "Accept": "application/json"},
                timeout=self.timeout_s,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise GeocodeError(f"Reverse geocoding failed for ({lat}, {lon}): {e}") from e

        if not isinstance(data, dict):
            raise GeocodeError(f"Unexpected geocoder response for ({lat}, {lon}): {data!r}")
        if "error" in data:
            raise GeocodeError(f"Geocoder error for ({lat}, {lon}): {data['error']}")
        data.setdefault("address", {})
        return data
