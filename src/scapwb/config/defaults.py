"""
Default configuration values for scapwb.

These values are used when no configuration file is given or when keys are
missing from it. They mirror the field defaults of the pydantic models.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "logging": {
        "level": "WARNING",
        "format": "console",
        "output": "stderr",
    },
    "output": {
        "directory": "./results",
        "result_filename": "xccdf-results.xml",
        "report_filename": "report.html",
        "arf_filename": "arf.xml",
    },
    "scanner": {
        "oscap_path": "/usr/bin/oscap",
        "pkexec_oscap_path": "/usr/libexec/scap-workbench-pkexec-oscap.sh",
        "pkexec_path_env": "SCAP_WORKBENCH_PKEXEC_OSCAP_PATH",
        "nice_path": "/usr/bin/nice",
        "niceness": 10,
        "poll_interval_ms": 100,
        "cancel_poll_interval_ms": 1000,
        "probe_timeout": 30,
    },
}


def get_default_config_yaml() -> str:
    """
    Generate default configuration as YAML string.

    Returns:
        YAML-formatted default configuration with documentation comments.
    """
    return '''# =============================================================================
# scapwb - local SCAP scan supervisor
# Configuration File
# =============================================================================
# Every key can also be set through the environment, e.g.
#   SCAPWB_SCANNER__NICENESS=5
#   SCAPWB_LOGGING__FORMAT=json
# =============================================================================

# -----------------------------------------------------------------------------
# Logging Configuration
# -----------------------------------------------------------------------------
logging:
  # Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL
  # (--log-level, --verbose and --quiet take precedence)
  level: WARNING

  # Log format: "json" for unattended runs, "console" for terminals
  format: console

  # Output destination: stdout, stderr, or file path
  output: stderr

# -----------------------------------------------------------------------------
# Output Configuration
# -----------------------------------------------------------------------------
output:
  # Directory the collected artifacts are written to
  directory: ./results

  result_filename: xccdf-results.xml
  report_filename: report.html
  arf_filename: arf.xml

# -----------------------------------------------------------------------------
# oscap Invocation
# -----------------------------------------------------------------------------
scanner:
  # oscap binary used for the capability query (oscap -V)
  oscap_path: /usr/bin/oscap

  # Wrapper that runs oscap with elevated privileges
  pkexec_oscap_path: /usr/libexec/scap-workbench-pkexec-oscap.sh

  # Environment variable that overrides pkexec_oscap_path when set
  pkexec_path_env: SCAP_WORKBENCH_PKEXEC_OSCAP_PATH

  # nice binary used to lower the scan priority; set to null to disable
  nice_path: /usr/bin/nice
  niceness: 10

  # Poll intervals in milliseconds
  poll_interval_ms: 100
  cancel_poll_interval_ms: 1000

  # Timeout in seconds
  probe_timeout: 30
'''
