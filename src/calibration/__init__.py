"""Camera calibration, undistortion and stereo disparity."""
