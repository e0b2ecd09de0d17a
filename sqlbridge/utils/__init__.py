"""Utility functions and classes for sqlbridge."""

from sqlbridge.utils import logging, serializers

__all__ = ("logging", "serializers")
