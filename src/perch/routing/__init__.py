"""Routing: per-method route tables with O(path-depth) matching.

Routes are registered during setup and compiled into an immutable
lookup structure before serving.
"""

from perch.routing.route import Handler, Method, Route, RouteMatch
from perch.routing.router import Router, not_found, parse_pattern

__all__ = ["Handler", "Method", "Route", "RouteMatch", "Router", "not_found", "parse_pattern"]
