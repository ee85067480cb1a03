"""
Bearing pipeline: smoothing, combination, and the navigation controller.
"""

from .smoothing import AzimuthWindow
from .combiner import BearingCombiner, PipelineState, ReadingsSink
from .controller import NavigationController

__all__ = [
    "AzimuthWindow",
    "BearingCombiner",
    "PipelineState",
    "ReadingsSink",
    "NavigationController",
]
