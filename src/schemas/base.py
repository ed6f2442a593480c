"""
Base schemas for operation parameters.

Parameter models replace the module-level globals and trackbar state of
interactive demos: every tunable value travels with the request.
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class BaseOperationParams(BaseModel):
    """
    Base class for all operation parameter models.

    Provides:
    - rejection of unknown fields
    - to_dict() with enums converted to their string values
    """

    model_config = ConfigDict(extra="forbid", use_enum_values=False)

    def to_dict(self) -> Dict[str, Any]:
        """
        Export parameters to a plain dictionary for detector functions.

        Example:
            >>> params = EdgeDetectionParams(method=EdgeMethod.SOBEL)
            >>> params.to_dict()["method"]
            'sobel'
        """
        data = self.model_dump(exclude_none=True)

        for key, value in data.items():
            if hasattr(value, "value"):
                data[key] = value.value

        return data
