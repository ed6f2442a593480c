"""Detector classes: edges, corners, thresholds, contours, lines, alignment."""
