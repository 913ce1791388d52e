# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Run the API server: ``python -m academic_results``."""

import uvicorn

from academic_results.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "academic_results.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        workers=1 if settings.api.reload else settings.api.workers,
        reload=settings.api.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
