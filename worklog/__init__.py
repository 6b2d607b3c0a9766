"""WorkLog - daily work hours and wage projection"""

__version__ = "1.0.0"
