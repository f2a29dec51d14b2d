"""BIMI checklist."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

from .base import CheckResult

PUBLISHED = 100
SYNTAX = 150
LOCATION_EXTENSION = 160
DOWNLOAD_IMAGE = 200
IMAGE_FORMAT = 250
DOWNLOAD_CERTIFICATE = 300
CERTIFICATE_SYNTAX = 350
CERTIFICATE_AUTHORITY = 400
LOGO_VALIDATION = 450
CERTIFICATE_EXPIRATION = 500
CERTIFICATE_ISSUER = 550
DMARC_PUBLISHED = 800
DMARC_POLICY = 850


@dataclass
class CertInfo:
    """Summary of a VMC chain; the window is intersected across the chain."""

    subject: str
    issuer: str
    serial: int
    algorithm: str
    valid_from: datetime
    valid_to: datetime


@dataclass
class BimiCheckResult(CheckResult):
    SCHEMA: ClassVar[tuple[tuple[int, str, str, str], ...]] = (
        (PUBLISHED, "BIMI Record Published", "BIMI Record found", "BIMI Record not found"),
        (SYNTAX, "BIMI Syntax Check", "The Record is Valid", "The Record is Invalid"),
        (
            LOCATION_EXTENSION,
            "BIMI Location Extension",
            "BIMI Location is Valid.",
            "BIMI Location is Invalid.",
        ),
        (
            DOWNLOAD_IMAGE,
            "BIMI Download Image",
            "BIMI SVG image downloaded successfully",
            "Failed to download BIMI SVG image",
        ),
        (
            IMAGE_FORMAT,
            "BIMI Image Format",
            "BIMI Image Format Correct",
            "BIMI Image Format Incorrect",
        ),
        (
            DOWNLOAD_CERTIFICATE,
            "BIMI Download Certificate",
            "BIMI certificate downloaded successfully",
            "Failed to download BIMI certificate",
        ),
        (
            CERTIFICATE_SYNTAX,
            "BIMI Certificate Syntax Check",
            "The Record is Valid",
            "The Record is Invalid",
        ),
        (
            CERTIFICATE_AUTHORITY,
            "BIMI Certificate Authority",
            "The certificate is valid",
            "The certificate is invalid",
        ),
        (
            LOGO_VALIDATION,
            "BIMI Logo Validation",
            "BIMI Logo Validation Valid",
            "BIMI Logo Validation Failed",
        ),
        (
            CERTIFICATE_EXPIRATION,
            "BIMI Certificate Expiration",
            "The certificate is not expired.",
            "The certificate is expired.",
        ),
        (
            CERTIFICATE_ISSUER,
            "BIMI Certificate Issuer",
            "The Certificate is issued by a recognized MVA",
            "The Certificate is not issued by a recognized MVA",
        ),
        (
            DMARC_PUBLISHED,
            "DMARC Record Published BIMI Required",
            "DMARC Record found - Valid for BIMI",
            "DMARC Record not found - Invalid for BIMI",
        ),
        (
            DMARC_POLICY,
            "DMARC Policy Not Enabled BIMI Required",
            "DMARC Quarantine/Reject policy enabled - Valid for BIMI",
            "DMARC Quarantine/Reject policy not enabled - Invalid for BIMI",
        ),
    )

    version: str | None = None
    locations: list[str] = field(default_factory=list)
    authorities: str | None = None
    cert_info: CertInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["version"] = self.version
        data["locations"] = self.locations
        data["authorities"] = self.authorities
        if self.cert_info:
            data["certificate"] = {
                "subject": self.cert_info.subject,
                "issuer": self.cert_info.issuer,
                "serial": str(self.cert_info.serial),
                "algorithm": self.cert_info.algorithm,
                "valid_from": self.cert_info.valid_from.isoformat(),
                "valid_to": self.cert_info.valid_to.isoformat(),
            }
        return data
