"""Sofa Factory Manager: orders, production and inventory for a sofa workshop."""

__version__ = "1.0.0"
