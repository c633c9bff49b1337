"""Role-based access control with hierarchical permission inheritance."""

__version__ = "0.1.0"
