"""
Structured Exception System for Dependency Management
=====================================================

Exception hierarchy with error categorization, severity levels and context
information for BOM resolution and POM generation.

Features:
- Structured exception hierarchy
- Error categorization and severity levels
- Context data describing the failed operation
- Troubleshooting steps for common failures
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorSeverity(str, Enum):
    """Error severity levels for categorization."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories for classification."""
    CONFIGURATION = "configuration"
    CONSTRUCTION = "construction"
    RESOLUTION = "resolution"
    NETWORK = "network"
    VALIDATION = "validation"


@dataclass
class ErrorContext:
    """Context information for errors."""
    component: str
    operation: str
    start_time: float = field(default_factory=time.time)
    coordinates: Optional[str] = None
    context_data: Dict[str, Any] = field(default_factory=dict)


class DependencyManagementException(Exception):
    """
    Base exception class for dependency management.

    Carries a category, a severity and an error context so failures can be
    reported consistently by callers and serialized with ``to_dict``.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.RESOLUTION,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        troubleshooting_steps: Optional[List[str]] = None,
        component: Optional[str] = None,
    ):
        super().__init__(message)

        self.error_id = str(uuid.uuid4())
        self.message = message
        self.severity = severity
        self.category = category
        self.timestamp = time.time()
        self.error_code = error_code or self._generate_error_code()

        self.component = component or (context.component if context else "unknown")
        self.context = context or ErrorContext(component=self.component, operation="unknown")
        self.cause = cause
        self.troubleshooting_steps = list(troubleshooting_steps or [])

        self._log_error()

    def _generate_error_code(self) -> str:
        """Generate an error code based on category and timestamp."""
        timestamp_suffix = str(int(self.timestamp))[-6:]
        return f"{self.category.value.upper()}_{timestamp_suffix}"

    def _log_error(self):
        """Log the error with structured information."""
        logger = logging.getLogger(f"dependency_management.errors.{self.category.value}")

        log_data = {
            "error_id": self.error_id,
            "error_code": self.error_code,
            "severity": self.severity.value,
            "category": self.category.value,
            "component": self.context.component,
            "operation": self.context.operation,
        }
        if self.context.coordinates:
            log_data["coordinates"] = self.context.coordinates

        logger.debug(self.message, extra={"extra_fields": log_data})

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_id": self.error_id,
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "timestamp": self.timestamp,
            "context": {
                "component": self.context.component,
                "operation": self.context.operation,
                "coordinates": self.context.coordinates,
                "context_data": self.context.context_data,
            },
            "cause": str(self.cause) if self.cause else None,
            "troubleshooting_steps": self.troubleshooting_steps,
        }

    def add_troubleshooting_step(self, step: str):
        """Add a troubleshooting step."""
        self.troubleshooting_steps.append(step)


class ConstructionError(DependencyManagementException, ValueError):
    """Invalid coordinate or exclusion values."""

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        kwargs.setdefault("category", ErrorCategory.CONSTRUCTION)
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("context", ErrorContext(component="model", operation="construct"))
        super().__init__(message, **kwargs)
        self.field_name = field_name
        if field_name:
            self.context.context_data["field"] = field_name


class ResolutionError(DependencyManagementException):
    """Fetching or parsing a BOM, or one of its transitive imports, failed."""

    def __init__(self, message: str, coordinates: Optional[Any] = None, **kwargs):
        kwargs.setdefault("category", ErrorCategory.RESOLUTION)
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        context = kwargs.get("context") or ErrorContext(component="resolver", operation="resolve")
        if coordinates is not None and not context.coordinates:
            context.coordinates = str(coordinates)
        kwargs["context"] = context

        steps = list(kwargs.get("troubleshooting_steps") or [])
        steps.extend([
            "Check that the BOM coordinates are correct",
            "Verify the configured repositories are reachable",
            "Check property values used in the BOM's import coordinates",
        ])
        kwargs["troubleshooting_steps"] = steps

        super().__init__(message, **kwargs)
        self.coordinates = coordinates


class ArtifactNotFoundError(ResolutionError):
    """A POM could not be found in any configured repository."""

    def __init__(self, coordinates: Any, repositories: Optional[List[str]] = None, **kwargs):
        searched = list(repositories or [])
        message = f"Could not find POM for {coordinates}"
        if searched:
            message += f" in {', '.join(searched)}"
        super().__init__(message, coordinates=coordinates, **kwargs)
        self.repositories = searched
        self.context.context_data["repositories"] = searched


class ConfigurationError(DependencyManagementException):
    """Malformed target POM tree or customization settings."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        kwargs.setdefault("category", ErrorCategory.CONFIGURATION)
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("context", ErrorContext(component="pom_configurer", operation="configure"))

        steps = list(kwargs.get("troubleshooting_steps") or [])
        steps.extend([
            f"Verify {config_key} configuration" if config_key else "Check the POM customization settings",
            "Check that the POM has a project root element",
        ])
        kwargs["troubleshooting_steps"] = steps

        super().__init__(message, **kwargs)
        self.config_key = config_key
        if config_key:
            self.context.context_data["config_key"] = config_key


def create_fetch_error(coordinates: Any, location: str, cause: Exception) -> ResolutionError:
    """Create a standardized error for a repository that could not be read."""
    context = ErrorContext(
        component="repository",
        operation="fetch",
        coordinates=str(coordinates),
        context_data={"location": location, "cause_type": type(cause).__name__},
    )
    return ResolutionError(
        f"Failed to fetch POM for {coordinates} from {location}: {cause}",
        coordinates=coordinates,
        category=ErrorCategory.NETWORK,
        context=context,
        cause=cause,
    )


def create_parse_error(coordinates: Any, details: str, cause: Optional[Exception] = None) -> ResolutionError:
    """Create a standardized error for a POM that is not well formed."""
    context = ErrorContext(
        component="maven_parser",
        operation="parse",
        coordinates=str(coordinates) if coordinates is not None else None,
    )
    return ResolutionError(
        f"Invalid POM for {coordinates}: {details}",
        coordinates=coordinates,
        category=ErrorCategory.VALIDATION,
        context=context,
        cause=cause,
    )
