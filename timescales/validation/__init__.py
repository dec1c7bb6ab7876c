"""
Validation Module

Validates manifest.yaml and raw input data before compute stages.

Exports:
    - validate_input: Validate manifest and raw table
    - ValidationError: Raised when input validation fails
    - InputValidationReport: Collected errors and warnings
"""

from .input_validation import (
    validate_input,
    ValidationError,
    InputValidationReport,
)

__all__ = [
    'validate_input',
    'ValidationError',
    'InputValidationReport',
]
