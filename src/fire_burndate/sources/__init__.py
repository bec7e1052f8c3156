"""Queryable boundary and raster collections backed by local files."""

from .boundaries import BoundaryCollection, BoundaryRecord, load_boundary_collection
from .frames import FrameCollection, RasterFrame, load_frame_collection

__all__ = [
    "BoundaryCollection",
    "BoundaryRecord",
    "FrameCollection",
    "RasterFrame",
    "load_boundary_collection",
    "load_frame_collection",
]
