"""
voxelstructure
==============
Headless voxel structure builder: draft/confirm/undo bookkeeping for unit
cubes plus a ground-connectivity check that collapses unsupported cubes.
"""
__version__ = "0.1.0"
