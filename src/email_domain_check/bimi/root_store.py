"""Trust anchors for VMC chain verification."""

import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from cryptography import x509
from cryptography.x509.verification import (
    Criticality,
    ExtensionPolicy,
    PolicyBuilder,
    Store,
    VerificationError,
)

from ..constants import DEFAULT_ROOT_CERTS_DIR, MAX_CHAIN_DEPTH

logger = logging.getLogger(__name__)

# Issuers mark logotype and other BIMI extensions critical; they must not
# fail path validation on their own.
_ee_policy = (
    ExtensionPolicy.permit_all()
    .require_present(x509.SubjectAlternativeName, Criticality.AGNOSTIC, None)
    .may_be_present(x509.ExtendedKeyUsage, Criticality.AGNOSTIC, None)
)
_ca_policy = (
    ExtensionPolicy.permit_all()
    .require_present(x509.BasicConstraints, Criticality.AGNOSTIC, None)
    .may_be_present(x509.ExtendedKeyUsage, Criticality.AGNOSTIC, None)
)


class TrustStore(Protocol):
    """Anything able to verify a leaf-first chain against trust anchors."""

    def verify_chain(
        self, chain: list[x509.Certificate], now: datetime | None = None
    ) -> tuple[bool, str | None]: ...


class RootTrustStore:
    """
    Set of root certificates considered authoritative for VMC chains.

    Read-only once constructed.
    """

    def __init__(self, anchors: list[x509.Certificate] | None = None):
        self._anchors: list[x509.Certificate] = list(anchors or [])

    @classmethod
    def from_directory(cls, path: Path) -> "RootTrustStore":
        """
        Load every ``*.pem`` file of a directory.

        Files whose name starts with ``_`` are ignored. Unreadable or
        malformed files are logged and skipped.
        """
        anchors: list[x509.Certificate] = []
        if not path.is_dir():
            logger.warning(f"Root certificate directory not found: {path}")
            return cls(anchors)

        for pem_file in sorted(path.glob("*.pem")):
            if pem_file.name.startswith("_"):
                continue
            try:
                anchors.extend(x509.load_pem_x509_certificates(pem_file.read_bytes()))
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load root certificate {pem_file}: {e}")

        logger.debug(f"Loaded {len(anchors)} root certificate(s) from {path}")
        return cls(anchors)

    @property
    def anchors(self) -> list[x509.Certificate]:
        return list(self._anchors)

    def __len__(self) -> int:
        return len(self._anchors)

    def verify_chain(
        self, chain: list[x509.Certificate], now: datetime | None = None
    ) -> tuple[bool, str | None]:
        """
        Verify a leaf-first chain up to one of the trust anchors.

        Args:
            chain: Leaf certificate followed by its intermediates
            now: Validation time (default: current UTC time)

        Returns:
            Tuple of (trusted, error message)
        """
        if not chain:
            return False, "Certificate chain is empty."
        if not self._anchors:
            return False, "No trusted root certificates are loaded."

        verifier = (
            PolicyBuilder()
            .store(Store(self._anchors))
            .time(now or datetime.now(timezone.utc))
            .extension_policies(ee_policy=_ee_policy, ca_policy=_ca_policy)
            .max_chain_depth(MAX_CHAIN_DEPTH)
            .build_client_verifier()
        )

        try:
            verifier.verify(chain[0], chain[1:])
        except VerificationError as e:
            logger.debug(f"Chain verification failed: {e}")
            return False, f"Certificate chain does not verify to a trusted root: {e}"
        return True, None


_default_store: RootTrustStore | None = None
_default_store_lock = threading.Lock()


def get_default_trust_store(path: Path | None = None) -> RootTrustStore:
    """
    Return the process-wide trust store, loading it on first use.

    The directory argument only matters for the first call.
    """
    global _default_store
    if _default_store is None:
        with _default_store_lock:
            if _default_store is None:
                _default_store = RootTrustStore.from_directory(path or DEFAULT_ROOT_CERTS_DIR)
    return _default_store
