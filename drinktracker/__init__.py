# SPDX-License-Identifier: MIT
"""Drink Tracker - personal consumption log with cooldown statistics."""

from drinktracker._version import __version__

__all__ = ["__version__"]
