"""Order-management core for the food-delivery platform."""

__version__ = "0.1.0"
