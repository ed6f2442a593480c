"""
Spatial-domain image operations.
"""
