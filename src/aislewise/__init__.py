"""
Aislewise recipe-to-shopping-list package.

The package turns a recipe name into an aisle-grouped grocery list by prompting a text
generation model and recovering structure from whatever the model sends back.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
