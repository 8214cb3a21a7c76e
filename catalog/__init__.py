"""
WaytoAR Catalog Builder

Turns a directory of AR model files into the gallery catalog
(data/models.json).

Pipeline stages:
1. Scan - Group .usdz / .glb / thumbnail files by base name
2. Assemble - Build sorted catalog entries with generation metadata
3. Write - Atomically replace the published catalog
"""

__version__ = "0.1.0"
