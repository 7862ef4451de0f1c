"""
Pydantic models for scapwb configuration validation.

This module defines type-safe configuration models that ensure
configuration correctness at load time.
"""

from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class LogLevel(str, Enum):
    """Valid log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Valid log output formats."""

    JSON = "json"
    CONSOLE = "console"


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    model_config = ConfigDict(extra="forbid")

    level: LogLevel = Field(
        default=LogLevel.WARNING,
        description="Logging level",
    )
    format: LogFormat = Field(
        default=LogFormat.CONSOLE,
        description="Log output format",
    )
    output: str = Field(
        default="stderr",
        description="Log output destination (stdout, stderr, or file path)",
    )


class OutputConfig(BaseModel):
    """Where the CLI stores artifacts collected from a scan."""

    model_config = ConfigDict(extra="forbid")

    directory: str = Field(
        default="./results",
        description="Directory for result, report and ARF files",
    )
    result_filename: str = Field(
        default="xccdf-results.xml",
        description="File name for the XCCDF result document",
    )
    report_filename: str = Field(
        default="report.html",
        description="File name for the HTML report",
    )
    arf_filename: str = Field(
        default="arf.xml",
        description="File name for the ARF bundle",
    )


class ScannerConfig(BaseModel):
    """
    Configuration for invoking the local oscap tool.

    Paths are resolved once, when the scanner is constructed. The only
    value read from the process environment afterwards is the pkexec
    wrapper override named by ``pkexec_path_env``.
    """

    model_config = ConfigDict(extra="forbid")

    oscap_path: str = Field(
        default="/usr/bin/oscap",
        description="oscap binary used for the unprivileged capability query",
    )
    pkexec_oscap_path: str = Field(
        default="/usr/libexec/scap-workbench-pkexec-oscap.sh",
        description="Privilege-elevation wrapper that runs oscap as root",
    )
    pkexec_path_env: str = Field(
        default="SCAP_WORKBENCH_PKEXEC_OSCAP_PATH",
        description="Environment variable overriding pkexec_oscap_path",
    )
    nice_path: Optional[str] = Field(
        default="/usr/bin/nice",
        description="nice binary; null disables the niceness wrapper",
    )
    niceness: Annotated[int, Field(ge=-20, le=19)] = Field(
        default=10,
        description="Niceness level passed to nice -n",
    )
    poll_interval_ms: Annotated[int, Field(ge=1, le=10000)] = Field(
        default=100,
        description="Wait interval between process polls",
    )
    cancel_poll_interval_ms: Annotated[int, Field(ge=1, le=60000)] = Field(
        default=1000,
        description="Wait interval once cancellation has been requested",
    )
    probe_timeout: Annotated[int, Field(ge=1, le=600)] = Field(
        default=30,
        description="Timeout for the oscap -V capability query in seconds",
    )

    @field_validator("nice_path")
    @classmethod
    def validate_nice_path(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty nice path as disabled."""
        if v is not None and v.strip() == "":
            return None
        return v

    @model_validator(mode="after")
    def validate_intervals(self) -> "ScannerConfig":
        if self.cancel_poll_interval_ms < self.poll_interval_ms:
            raise ValueError("cancel_poll_interval_ms must not be shorter than poll_interval_ms")
        return self


class ScapwbConfig(BaseModel):
    """Root configuration model for scapwb."""

    model_config = ConfigDict(extra="allow")

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    output: OutputConfig = Field(
        default_factory=OutputConfig,
        description="Output configuration",
    )
    scanner: ScannerConfig = Field(
        default_factory=ScannerConfig,
        description="oscap invocation configuration",
    )
