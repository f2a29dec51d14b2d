"""BIMI logo, certificate and trust validation."""

from .certificate import (
    chain_validity,
    get_cert_info,
    get_logotype_extension,
    load_chain,
    validate_logotype_extension,
)
from .root_store import RootTrustStore, TrustStore, get_default_trust_store
from .svg import check_bimi_svg
from .validator import BimiValidator, check_vmc

__all__ = [
    "BimiValidator",
    "RootTrustStore",
    "TrustStore",
    "chain_validity",
    "check_bimi_svg",
    "check_vmc",
    "get_cert_info",
    "get_default_trust_store",
    "get_logotype_extension",
    "load_chain",
    "validate_logotype_extension",
]
