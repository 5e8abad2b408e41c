"""Utility modules for the County Flood Monitor."""

from .config import config, Config
from .validation import InvalidInputError
