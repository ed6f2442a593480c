"""Point clouds: PCD files, synthetic clouds, ICP registration, RANSAC model fitting."""
