"""
Error handling and validation system for the LAN survey.

This module provides the exception hierarchy for fatal conditions, a
central handler that turns a fatal error into a diagnostic with
troubleshooting suggestions and an exit code, and validation of the
external tools the survey delegates to.
"""

import platform
import shutil
from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .logger import Logger, get_logger


class ErrorType(Enum):
    """Enumeration for the kinds of fatal errors."""
    CONFIGURATION_ERROR = "configuration_error"
    VALIDATION_ERROR = "validation_error"
    SEGMENT_FILE_ERROR = "segment_file_error"
    INVENTORY_FILE_ERROR = "inventory_file_error"
    TOOL_MISSING_ERROR = "tool_missing_error"


@dataclass
class ErrorContext:
    """
    Context information attached to a fatal error.

    Attributes:
        error_type: Type of error that occurred
        path: File being processed when the error occurred, if any
        line_number: 1-based line (or row) number inside that file, if any
        additional_info: Additional context information
    """
    error_type: ErrorType
    path: Optional[str] = None
    line_number: Optional[int] = None
    additional_info: Dict[str, str] = field(default_factory=dict)


class SurveyError(Exception):
    """Base exception class for fatal survey errors."""

    error_type = ErrorType.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        line_number: Optional[int] = None,
        **additional_info: str,
    ):
        super().__init__(message)
        self.error_context = ErrorContext(
            error_type=self.error_type,
            path=path,
            line_number=line_number,
            additional_info=dict(additional_info),
        )


class ConfigurationError(SurveyError):
    """Exception for unusable configuration."""
    error_type = ErrorType.CONFIGURATION_ERROR


class ValidationError(SurveyError):
    """Exception for malformed addresses and CIDR ranges."""
    error_type = ErrorType.VALIDATION_ERROR


class SegmentFileError(SurveyError):
    """Exception for an unreadable or malformed segment list."""
    error_type = ErrorType.SEGMENT_FILE_ERROR


class InventoryFileError(SurveyError):
    """Exception for an unreadable or malformed inventory CSV."""
    error_type = ErrorType.INVENTORY_FILE_ERROR


class ToolMissingError(SurveyError):
    """Exception for a missing or non-executable external tool."""
    error_type = ErrorType.TOOL_MISSING_ERROR


class ErrorHandler:
    """
    Central reporting of fatal errors.

    Logs the diagnostic, prints suggestions matching the error type and
    returns the process exit code.
    """

    EXIT_FATAL = 1

    def __init__(self, logger: Optional[Logger] = None):
        """
        Initialize the ErrorHandler.

        Args:
            logger: Logger instance for error reporting
        """
        self.logger = logger or get_logger(__name__)

    def report_fatal(self, error: SurveyError) -> int:
        """
        Report a fatal error and return the exit code for it.

        Args:
            error: The fatal error that stopped the survey

        Returns:
            int: Exit code for the process
        """
        context = error.error_context
        location = ""
        if context.path:
            location = f" [{context.path}"
            if context.line_number is not None:
                location += f":{context.line_number}"
            location += "]"

        self.logger.error(f"{error}{location}")

        for suggestion in self._suggestions(context):
            self.logger.info(f"  • {suggestion}")

        return self.EXIT_FATAL

    def _suggestions(self, context: ErrorContext) -> List[str]:
        if context.error_type == ErrorType.TOOL_MISSING_ERROR:
            tool_name = context.additional_info.get("tool_name", "ping")
            return ToolValidator.installation_hints(tool_name)
        if context.error_type == ErrorType.SEGMENT_FILE_ERROR:
            return [
                "Each line must read: <segment-name> <CIDR>, e.g. office 192.168.1.0/24",
                "Blank lines are allowed; comments are not",
            ]
        if context.error_type == ErrorType.INVENTORY_FILE_ERROR:
            return [
                "The header must contain ip, segments (or user_space) and name (or manual_name)",
                "Remove columns the survey does not know about",
            ]
        if context.error_type == ErrorType.CONFIGURATION_ERROR:
            return ["Check the YAML configuration file and the command line flags"]
        return []


class ToolValidator:
    """
    Validator for the external tools the survey delegates to.
    """

    INSTALL_HINTS = {
        "ping": [
            "Ubuntu/Debian: sudo apt-get install iputils-ping",
            "CentOS/RHEL: sudo yum install iputils",
            "Alpine: apk add iputils",
        ],
        "ip": [
            "Ubuntu/Debian: sudo apt-get install iproute2",
        ],
    }

    def __init__(self, logger: Optional[Logger] = None):
        self.logger = logger or get_logger(__name__)

    def require_ping(self) -> str:
        """
        Ensure the ping command is on PATH.

        Returns:
            str: Resolved path of the ping binary

        Raises:
            ToolMissingError: If ping cannot be found
        """
        tool_path = shutil.which("ping")
        if not tool_path:
            raise ToolMissingError(
                "Required tool 'ping' not found in PATH", tool_name="ping"
            )
        self.logger.debug(f"Found ping at: {tool_path}")
        return tool_path

    def has_neighbor_tool(self) -> bool:
        """Return True when the neighbor table listing command is available."""
        tool = "arp" if platform.system().lower() in ("windows", "darwin") else "ip"
        available = shutil.which(tool) is not None
        if not available:
            self.logger.warning(
                f"'{tool}' not found - MAC addresses will come only from the inventory"
            )
        return available

    @classmethod
    def installation_hints(cls, tool_name: str) -> List[str]:
        return cls.INSTALL_HINTS.get(tool_name, [f"Install '{tool_name}' and make sure it is on PATH"])
