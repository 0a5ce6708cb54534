"""
landrisk package
================

Offline landslide/erosion risk engine over two fixed survey datasets.

- The CLI entry point is in `landrisk/cli.py`.
- Per-record scoring lives in `landrisk/geographic.py` and `landrisk/socioeconomic.py`.
- The coordinate join and loss-risk classification are in `landrisk/points.py`.
- The selection engine (search, filters, sorting, undo/redo) is in `landrisk/engine.py`.
"""

__version__ = '0.3.0'
