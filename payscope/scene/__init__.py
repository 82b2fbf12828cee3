"""
Scene rendering: scales, axes, the render clock and the diff/join scene graph.

Example usage:
    from payscope.scene import Scene

    scene = Scene()
    scene.set_shapes("avg-line", stats, encode_line, kind="line")
    scene.clear_tags(["avg-line"])
"""

from payscope.scene.axes import AxisController
from payscope.scene.clock import RenderClock
from payscope.scene.graph import Annotation, JoinResult, Scene, Shape

__all__ = [
    "Annotation",
    "AxisController",
    "JoinResult",
    "RenderClock",
    "Scene",
    "Shape",
]
