"""Route group exports."""

from . import conditions, health, route, storage, usage

__all__ = ["route", "storage", "conditions", "usage", "health"]
