# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Revisions live in versions/ and are applied either by the alembic CLI
(through env.py) or programmatically by runner.run_migrations().
"""
