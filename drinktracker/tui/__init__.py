# SPDX-License-Identifier: MIT
"""Textual front end for Drink Tracker."""
