"""Academic Results Backend.

Result lifecycle engine for a university administration backend: score
entry, grading, two-stage approval, publication and transcripts.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
