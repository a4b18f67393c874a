"""
Base Schema Models

Fundamental base classes that the EVM schema models inherit from. They
provide type safety, validation and serialization across the
package.

Core Classes:
    - CanonicalModel: Pydantic base model with shared config
    - VerificationStatus: Outcome codes for endorsement assessment
    - BaseVerificationResult: Abstract verification result model

Dependencies:
    - pydantic: For data validation and serialization
"""

import json
from abc import ABC
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CanonicalModel(BaseModel):
    """
    Pydantic base model shared by the package's schema models.

    Fields may be populated by name as well as by alias.
    """

    model_config = ConfigDict(populate_by_name=True)


class VerificationStatus(str, Enum):
    """
    Enumeration of endorsement assessment outcomes.

    Attributes:
        SUCCESS: Signature and authorization are currently valid
        INVALID_SIGNATURE: Signer mismatch or stale/forged nonce
        EXPIRED: Deadline is not after the current time
        CANCELLED: Struct hash is in the cancellation set
        INVALID_ENDORSEMENT: Endorsement does not match the escrow state
    """
    SUCCESS = "success"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    INVALID_ENDORSEMENT = "invalid_endorsement"


class BaseVerificationResult(CanonicalModel, ABC):
    """
    Abstract base class for verification results.

    Attributes:
        verification_type: Type of verification (e.g., "endorsement")
        status: Verification result status (VerificationStatus enum)
        is_valid: Boolean indicating if verification was successful
        message: Human-readable status message
        error_details: Detailed error information if verification failed
        verified_at: Timestamp when verification was performed
    """

    verification_type: str = Field(..., description="Type of verification")
    status: VerificationStatus = Field(..., description="Verification result status")
    is_valid: bool = Field(..., description="Whether the authorization is valid")
    message: str = Field(..., description="Human-readable status message")
    error_details: Optional[Dict[str, Any]] = Field(None, description="Detailed error information")
    verified_at: datetime = Field(default_factory=datetime.now, description="Verification timestamp")

    def is_success(self) -> bool:
        """
        Check if verification was successful.

        Returns:
            bool: True if verification was successful, False otherwise.
        """
        return self.is_valid and self.status == VerificationStatus.SUCCESS

    def get_error_message(self) -> Optional[str]:
        """
        Get formatted error message from verification result.

        Returns:
            Optional[str]: Error message if verification failed, None if successful.
        """
        if self.is_success():
            return None

        error_msg = f"Verification failed: {self.message}"
        if self.error_details:
            details_str = json.dumps(self.error_details, indent=2, default=str)
            error_msg += f"\nDetails: {details_str}"
        return error_msg
