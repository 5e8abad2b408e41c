"""
County Flood Monitor

Flood occurrence and severity at USGS stream gages, summarized by gage,
county and date.
"""

__version__ = "0.1.0"
