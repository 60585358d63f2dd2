"""Utility functions"""
from .timestamps import EPOCH, parse_timestamp

__all__ = [
    "EPOCH",
    "parse_timestamp",
]
