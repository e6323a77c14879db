"""
Geofence evaluation for route deviation checks.

A route geofence is stored as JSON:

    {"type": "polygon", "coords": [[lat, lng], [lat, lng], ...]}
    {"type": "circle",  "coords": {"center": [lat, lng], "radius": meters}}

"coordinates" is accepted as an alias of "coords".

Missing, incomplete or unknown geofences are treated as "inside": a route
without a usable fence never produces out-of-route alerts.
"""

from typing import Any, Dict, List, Optional, Sequence

from bus_tracking.app.services.geo import haversine_distance

POLYGON = "polygon"
CIRCLE = "circle"


def _fence_coords(geofence: Optional[Dict[str, Any]]) -> Any:
    if not geofence or not geofence.get("type"):
        return None
    coords = geofence.get("coords")
    if coords is None:
        coords = geofence.get("coordinates")
    return coords


def _valid_circle(circle: Any) -> bool:
    if not isinstance(circle, dict):
        return False
    center = circle.get("center")
    return (
        isinstance(center, (list, tuple))
        and len(center) == 2
        and circle.get("radius") is not None
    )


def point_in_polygon(lat: float, lng: float, polygon: Sequence[Sequence[float]]) -> bool:
    """
    Ray casting parity test.
    
    The ring is a list of [lat, lng] vertices; lat is used as x and lng as y,
    the same way the fences are drawn by the route editor. Rings with fewer
    than 3 vertices contain nothing.
    """
    if not polygon or len(polygon) < 3:
        return False
    
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i][0], polygon[i][1]
        xj, yj = polygon[j][0], polygon[j][1]
        
        if (yi > lng) != (yj > lng) and lat < (xj - xi) * (lng - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    
    return inside


def point_in_circle(lat: float, lng: float, circle: Dict[str, Any]) -> bool:
    """
    Check if a point is inside a circle ({"center": [lat, lng], "radius": meters}).
    
    The boundary counts as inside.
    """
    if not _valid_circle(circle):
        return False
    
    center_lat, center_lng = circle["center"]
    return haversine_distance(lat, lng, center_lat, center_lng) <= circle["radius"]


def check_geofence(lat: float, lng: float, geofence: Optional[Dict[str, Any]]) -> bool:
    """
    Check if a location is within a route geofence.
    
    Returns True when there is no fence, the fence has no coordinates or
    malformed coordinates, or the fence type is unknown.
    """
    coords = _fence_coords(geofence)
    if coords is None:
        return True
    
    fence_type = geofence["type"]
    if fence_type == POLYGON:
        if not isinstance(coords, (list, tuple)) or not coords:
            return True
        return point_in_polygon(lat, lng, coords)
    if fence_type == CIRCLE:
        if not _valid_circle(coords):
            return True
        return point_in_circle(lat, lng, coords)
    
    return True


def distance_from_geofence(lat: float, lng: float, geofence: Optional[Dict[str, Any]]) -> float:
    """
    Estimate how far outside a geofence a point is, in meters.
    
    0 when the point is inside (or there is no fence).
    Circle: distance to the center minus the radius, clamped at 0.
    Polygon: distance to the nearest *vertex*. This over-estimates the true
    distance to an edge; it is only used to bucket alert severity.
    """
    if check_geofence(lat, lng, geofence):
        return 0.0
    
    coords = _fence_coords(geofence)
    if geofence["type"] == CIRCLE:
        center_lat, center_lng = coords["center"]
        distance = haversine_distance(lat, lng, center_lat, center_lng)
        return max(0.0, distance - coords["radius"])
    
    vertices: List[Sequence[float]] = coords
    return min(haversine_distance(lat, lng, v[0], v[1]) for v in vertices)
