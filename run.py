#!/usr/bin/env python3
"""Convenience runner for the GPX photo map tool.

Usage:
    python run.py --gpx ride.gpx --images photos/
"""
import logging
from gpx_photo_map.main import main

if __name__ == "__main__":
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    raise SystemExit(main())
