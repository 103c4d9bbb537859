from typing import List

from weatherway.models.weather import BoundingBox, GeoPoint


def build_grid(bbox: BoundingBox, steps: int = 4) -> List[GeoPoint]:
    """
    Regular steps x steps grid of sample points inscribed in a bounding box.

    Point (i, j) sits at lat_min + i * lat_step, lon_min + j * lon_step, so the
    corners of the box are always included. Ordered row by row (latitude first).
    """
    if steps < 2:
        raise ValueError("Grid needs at least 2 steps per axis")

    lat_step = (bbox.lat_max - bbox.lat_min) / (steps - 1)
    lon_step = (bbox.lon_max - bbox.lon_min) / (steps - 1)

    points = []
    for i in range(steps):
        for j in range(steps):
            # Pin the last row/column to the box edge to avoid float drift
            lat = bbox.lat_max if i == steps - 1 else bbox.lat_min + i * lat_step
            lon = bbox.lon_max if j == steps - 1 else bbox.lon_min + j * lon_step
            points.append(GeoPoint(lat=lat, lon=lon))

    return points
