"""
Feature-based image alignment (ORB + homography).
"""

from typing import Any, Dict, Optional

import cv2
import numpy as np

from algorithms.base_detector import BaseDetector
from domain_types import VisionConstants


class FeatureAligner(BaseDetector):
    """Warp an image onto a reference through matched ORB keypoints."""

    def detect(
        self, image: np.ndarray, params: Optional[Dict[str, Any]] = None, **kwargs
    ) -> Dict[str, Any]:
        reference = kwargs.get("reference")
        if reference is None:
            raise ValueError("Alignment needs a reference image")
        return self.align(image, reference, params)

    def align(
        self,
        image: np.ndarray,
        reference: np.ndarray,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Align image to reference.

        Params:
            max_features: ORB keypoints per image (default 500)
            good_match_fraction: Share of best matches kept (default 0.15)

        Returns:
            Result whose image is the warped input; metadata holds the 3x3
            homography, match counts and a match visualization

        Raises:
            ValueError: If fewer than four matches survive
        """
        if params is None:
            params = {}

        max_features = int(params.get("max_features", VisionConstants.ORB_FEATURES))
        fraction = float(params.get("good_match_fraction", VisionConstants.GOOD_MATCH_FRACTION))
        if not 0.0 < fraction <= 1.0:
            raise ValueError(f"good_match_fraction must be in (0, 1], got {fraction}")

        gray = self._ensure_grayscale(image)
        gray_ref = self._ensure_grayscale(reference)

        orb = cv2.ORB_create(max_features)
        keypoints1, descriptors1 = orb.detectAndCompute(gray, None)
        keypoints2, descriptors2 = orb.detectAndCompute(gray_ref, None)
        if descriptors1 is None or descriptors2 is None:
            raise ValueError("No features found in one of the images")

        matcher = cv2.BFMatcher(cv2.NORM_HAMMING, crossCheck=True)
        matches = sorted(matcher.match(descriptors1, descriptors2), key=lambda m: m.distance)
        good = matches[: int(len(matches) * fraction)]

        if len(good) < 4:
            raise ValueError(f"Not enough matches to estimate a homography ({len(good)} < 4)")

        points1 = np.float32([keypoints1[m.queryIdx].pt for m in good]).reshape(-1, 1, 2)
        points2 = np.float32([keypoints2[m.trainIdx].pt for m in good]).reshape(-1, 1, 2)

        homography, inlier_mask = cv2.findHomography(points1, points2, cv2.RANSAC)
        if homography is None:
            raise ValueError("Homography estimation failed")

        height, width = reference.shape[:2]
        aligned = cv2.warpPerspective(image, homography, (width, height))
        matches_image = cv2.drawMatches(image, keypoints1, reference, keypoints2, good, None)

        inliers = int(inlier_mask.sum()) if inlier_mask is not None else 0
        self.logger.info(f"Aligned with {len(good)} matches ({inliers} inliers)")

        return self._create_result(
            True,
            [],
            aligned,
            {
                "homography": homography.tolist(),
                "total_matches": len(matches),
                "good_matches": len(good),
                "inliers": inliers,
                "matches_image": matches_image,
            },
        )
