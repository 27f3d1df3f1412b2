# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class domain package.

This package provides class capacity functionality including:
- Row locking of classes during transfers
- Seat accounting against the denormalized enrollment count
- Eligible destination queries
"""

from src.domains.class_.capacity import ClassCapacityTracker

__all__ = [
    "ClassCapacityTracker",
]
