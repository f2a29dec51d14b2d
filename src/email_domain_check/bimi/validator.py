"""BIMI trust-check pipeline."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlsplit

from ..checks import bimi as codes
from ..checks.base import CheckStatus
from ..checks.bimi import BimiCheckResult
from ..constants import DEFAULT_HTTP_TIMEOUT, LOGOTYPE_EXTENSION_OID, SVG_NAMESPACE
from ..http_utils import Fetcher, make_fetcher
from ..records.bimi import BIMIRecord
from .certificate import (
    PEM_MARKER,
    chain_validity,
    get_cert_info,
    get_logotype_extension,
    load_chain,
    validate_logotype_extension,
)
from .root_store import TrustStore, get_default_trust_store
from .svg import check_bimi_svg

logger = logging.getLogger(__name__)


def check_vmc(
    pem: bytes,
    result: BimiCheckResult,
    trust_store: TrustStore,
    now: datetime | None = None,
) -> None:
    """
    Run the certificate checks (350 to 550) on a downloaded PEM bundle.

    Stops at the first failing check; the result keeps whatever was
    recorded before the failure.
    """
    now = now or datetime.now(timezone.utc)

    text = pem.decode("ascii", errors="replace")
    if PEM_MARKER not in text:
        result.error(codes.CERTIFICATE_SYNTAX, "Authority evidence is not a PEM certificate bundle.")
        return
    result.ok(codes.CERTIFICATE_SYNTAX)

    try:
        chain = load_chain(pem)
    except ValueError as e:
        result.error(codes.CERTIFICATE_AUTHORITY, f"Failed to decode certificate chain: {e}")
        return
    result.ok(codes.CERTIFICATE_AUTHORITY)
    result.cert_info = get_cert_info(chain)
    logger.debug(f"Decoded VMC chain of {len(chain)} certificate(s): {result.cert_info.subject}")

    extension = get_logotype_extension(chain[0])
    if extension is None:
        result.error(
            codes.LOGO_VALIDATION,
            f"Certificate is missing the Verified Mark Extension (OID: {LOGOTYPE_EXTENSION_OID}), "
            "so it is not a valid VMC.",
        )
        return
    if not validate_logotype_extension(extension, result.logs):
        result.error(codes.LOGO_VALIDATION)
        return
    result.ok(codes.LOGO_VALIDATION)

    valid_from, valid_to = chain_validity(chain)
    if not valid_from <= now <= valid_to:
        result.error(
            codes.CERTIFICATE_EXPIRATION,
            f"Certificate chain is valid from {valid_from.isoformat()} "
            f"to {valid_to.isoformat()}, checked at {now.isoformat()}.",
        )
        return
    result.ok(codes.CERTIFICATE_EXPIRATION)

    trusted, error = trust_store.verify_chain(chain, now)
    if not trusted:
        result.error(codes.CERTIFICATE_ISSUER, error)
        return
    result.ok(codes.CERTIFICATE_ISSUER)


class BimiValidator:
    """
    Validate a BIMI record: logo location, SVG profile and VMC chain.

    Downloads go through ``fetch`` and chain trust through ``trust_store``.
    Without a trust store the process-wide one is loaded from
    ``root_certs_dir`` on first use.
    """

    def __init__(
        self,
        fetch: Fetcher | None = None,
        trust_store: TrustStore | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        root_certs_dir: Path | None = None,
    ):
        self.fetch = fetch or make_fetcher()
        self.trust_store = trust_store
        self.timeout = timeout
        self.root_certs_dir = root_certs_dir

    async def validate(
        self,
        record: BIMIRecord | None,
        domain: str | None = None,
        ns: list[str] | None = None,
        now: datetime | None = None,
    ) -> BimiCheckResult:
        """
        Run every check and return the filled checklist. Never raises.

        Args:
            record: BIMI record found in DNS, or None when nothing was published
            domain: Name the record was published at
            ns: Nameservers that answered
            now: Validation time (default: current UTC time)

        Returns:
            BimiCheckResult; DMARC prerequisite entries stay unchecked
        """
        result = BimiCheckResult(domain=domain, ns=list(ns or []))
        try:
            await self._run(record, result, now)
        except Exception as e:
            logger.error(f"Unexpected error validating BIMI for {domain}: {e}")
            result.logs.append(f"Unexpected error: {e}")
            # Mark the first check that has not been decided yet
            pending = next(
                (item.code for item in result.checks.values() if item.status is CheckStatus.NONE),
                None,
            )
            if pending is not None and pending < codes.DMARC_PUBLISHED:
                result.error(pending)
        return result

    async def _download(self, url: str) -> tuple[bytes | None, str | None]:
        logger.debug(f"Downloading {url}")
        return await self.fetch(url, self.timeout)

    async def _run(
        self, record: BIMIRecord | None, result: BimiCheckResult, now: datetime | None
    ) -> None:
        if not isinstance(record, BIMIRecord) or not record.has_version:
            result.error(codes.PUBLISHED, "No BIMI record with v=BIMI1 was found.")
            return
        result.ok(codes.PUBLISHED)
        result.version = record.v
        result.logs.extend(record.errors)

        if not record.l:
            result.error(codes.SYNTAX, "BIMI record has no location (l=) tag.")
            return
        result.ok(codes.SYNTAX)
        result.locations = [record.l]
        result.authorities = record.a

        location = urlsplit(record.l)
        if location.scheme.lower() != "https" or not location.netloc:
            result.error(codes.LOCATION_EXTENSION, f"BIMI location must be an HTTPS URL: {record.l}")
            return
        if not location.path.lower().endswith(".svg"):
            result.error(codes.LOCATION_EXTENSION, f"BIMI location must point to an .svg file: {record.l}")
            return
        result.ok(codes.LOCATION_EXTENSION)

        logo, error = await self._download(record.l)
        if logo is None:
            result.error(codes.DOWNLOAD_IMAGE, f"Failed to download {record.l}: {error}")
            return
        result.ok(codes.DOWNLOAD_IMAGE)

        problems = []
        if b"<svg" not in logo or SVG_NAMESPACE.encode() not in logo:
            problems.append(f"BIMI logo is not an SVG document in the {SVG_NAMESPACE} namespace.")
        problems.extend(check_bimi_svg(logo))
        if problems:
            result.logs.extend(problems)
            result.error(codes.IMAGE_FORMAT)
        else:
            result.ok(codes.IMAGE_FORMAT)

        if not record.a:
            logger.debug(f"BIMI record for {result.domain} has no authority evidence")
            return

        pem, error = await self._download(record.a)
        if pem is None:
            result.error(codes.DOWNLOAD_CERTIFICATE, f"Failed to download {record.a}: {error}")
            return
        result.ok(codes.DOWNLOAD_CERTIFICATE)

        trust_store = self.trust_store
        if trust_store is None:
            trust_store = get_default_trust_store(self.root_certs_dir)
        check_vmc(pem, result, trust_store, now)
