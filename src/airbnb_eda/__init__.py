"""
Neighbourhood and reviewer analysis of an Inside Airbnb city snapshot.
"""

__version__ = "1.0.0"
