"""Classical machine learning: synthetic datasets, OpenCV ml classifiers, k-means, YOLO."""
