"""taskboard: completion propagation and optimistic sync for a provider dashboard."""

__version__ = "0.1.0"
