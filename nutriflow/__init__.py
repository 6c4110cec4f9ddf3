"""
NutriFlow navigation core
"""

__version__ = "0.1.0"
