"""Virtual multi-monitor desktop: curved wall layout, field-of-view culling, display control and graphics surface routing."""

__version__ = "0.1.0"