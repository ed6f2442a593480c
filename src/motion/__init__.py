"""Optical flow and frame differencing."""
