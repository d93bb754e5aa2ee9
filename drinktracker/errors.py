# SPDX-License-Identifier: MIT
"""Exceptions raised by the tracker core."""


class TrackerError(Exception):
    """Base exception for drink tracker operations"""

    pass


class CorruptedStoreError(TrackerError):
    """Persisted store content is not valid JSON or has the wrong shape"""

    pass


class StorageWriteError(TrackerError):
    """Store or export file could not be written"""

    pass


class InvalidInputError(TrackerError):
    """Amount or user ID supplied by the user is unusable"""

    pass


class NoUserSelectedError(TrackerError):
    """Operation needs a current user but none is selected"""

    pass


class StorageReadError(TrackerError):
    """Store file exists but could not be read (permissions, I/O)"""

    pass
