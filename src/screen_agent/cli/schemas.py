#!/usr/bin/env python3
"""
Response Schemas for Screen Agent CLI

Standard envelopes for `--json` output. Every command prints either
`{"success": true, "data": {...}}` or `{"success": false, "error": "..."}`.

This module is part of the Presentation Layer and should only depend on
Core Layer components, not on Integration Layer.

Sample input:
- format_cli_response(True, data={"answer": "Sunny"})
- format_cli_response(False, error="API key is not set")

Expected output:
- {"success": True, "data": {"answer": "Sunny"}}
- {"success": False, "error": "API key is not set"}
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error response model"""
    success: bool = False
    error: str
    details: Optional[Dict[str, Any]] = None


class SuccessResponse(BaseModel):
    """Success response model"""
    success: bool = True
    data: Dict[str, Any]


def format_cli_response(success: bool, data: Optional[Dict[str, Any]] = None, error: Optional[str] = None) -> Dict[str, Any]:
    """
    Format a standardized CLI response.

    Args:
        success: Whether the operation was successful
        data: Response data (for successful operations)
        error: Error message (for failed operations)

    Returns:
        Dict[str, Any]: Formatted response
    """
    if success and data is not None:
        return SuccessResponse(data=data).model_dump()
    if not success and error is not None:
        response = ErrorResponse(error=error).model_dump()
        if response.get("details") is None:
            del response["details"]
        return response
    return {"success": success}
