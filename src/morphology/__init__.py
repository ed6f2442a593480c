"""Mathematical morphology: structuring elements, thinning and flood fill."""
