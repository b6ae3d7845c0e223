#!/usr/bin/env python3
"""
Compatibility entrypoint for local runs.

The application lives under `launchpad_app/`.
Use `python3 server.py` to serve the API.
"""

from launchpad_app.main import app, run


if __name__ == "__main__":
    run()
