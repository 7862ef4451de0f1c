"""
Description of what is being scanned.

The session is read-only for the scanner: it answers which document,
tailoring and profile a run uses.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ScanningSession(BaseModel):
    """
    SCAP content selection for one scanner.

    Example:
        >>> session = ScanningSession(
        ...     opened_file_path="/usr/share/xml/scap/ssg/content/ssg-rhel9-ds.xml",
        ...     profile="xccdf_org.ssgproject.content_profile_cis",
        ... )
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    opened_file_path: str = Field(
        default="",
        description="XCCDF file or source datastream to evaluate",
    )
    tailoring_file_path: Optional[str] = Field(
        default=None,
        description="Tailoring file passed to oscap",
    )
    user_tailoring_file_path: Optional[str] = Field(
        default=None,
        description="Tailoring file as the user saved it, shown in previews",
    )
    profile: str = Field(
        default="",
        description="XCCDF profile ID; empty selects the default profile",
    )
    datastream_id: Optional[str] = Field(
        default=None,
        description="Datastream ID inside a source datastream collection",
    )
    xccdf_id: Optional[str] = Field(
        default=None,
        description="XCCDF component ID inside the datastream",
    )
    skip_validation: bool = Field(
        default=False,
        description="Pass --skip-valid to oscap",
    )
    fetch_remote_resources: bool = Field(
        default=False,
        description="Allow oscap to download remote OVAL content",
    )

    @field_validator("tailoring_file_path", "user_tailoring_file_path", "datastream_id", "xccdf_id")
    @classmethod
    def empty_as_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v.strip() == "":
            return None
        return v

    def has_tailoring(self) -> bool:
        return self.tailoring_file_path is not None

    def get_user_tailoring_file_path(self) -> Optional[str]:
        """Tailoring path for display; falls back to the effective one."""
        return self.user_tailoring_file_path or self.tailoring_file_path
