"""ClassRoster Student Service.

Class rosters, enrollments and batch student transfers with
time-windowed undo.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
