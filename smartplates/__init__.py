"""
SmartPlates meal planning core.

Grocery list aggregation from weekly meal plans and the monthly
meal-plan calendar, served through a FastAPI application.
"""

__version__ = "1.0.0"
