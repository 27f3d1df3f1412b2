# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for ClassRoster.

This package contains domain services that encapsulate business logic.

Domains:
    auth: JWT token handling.
    class_: Class capacity tracking and row locking.
    enrollment: Enrollment store, history ledger and single-student enrollment.
    transfer: Batch transfer, undo and eligible destinations.
"""
