"""
Run the API with uvicorn on the fixed port.

Usage:
    python -m src.api
"""
from __future__ import annotations

import uvicorn

from .main import app


def main() -> None:
    settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="warning")


if __name__ == "__main__":
    main()
