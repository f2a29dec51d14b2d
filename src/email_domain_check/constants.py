"""Constants and default values used across the application."""

from pathlib import Path

# DNS Constants
DEFAULT_DNS_TIMEOUT = 5.0  # DNS query timeout in seconds
DEFAULT_DNS_TRIES = 3
DEFAULT_FAILOVER_SERVERS = [
    ["1.1.1.1", "1.0.0.1"],  # Cloudflare
    ["8.8.8.8", "8.8.4.4"],  # Google
]
DEFAULT_DNS_PUBLIC_SERVERS = ["1.1.1.1", "1.0.0.1", "8.8.8.8", "8.8.4.4"]

# HTTP Constants
DEFAULT_HTTP_TIMEOUT = 8.0  # HTTP request timeout in seconds
DEFAULT_USER_AGENT = "email-domain-check"
MAX_DOWNLOAD_BYTES = 1024 * 1024  # policy files and logos are far smaller

# SMTP Constants
DEFAULT_SMTP_TIMEOUT = 10.0  # SMTP connect timeout in seconds
DEFAULT_DELIVERY_PORT = 25

# Selectors and record locations
DEFAULT_DKIM_SELECTOR = "default"
DEFAULT_BIMI_SELECTOR = "default"
DKIM_LABEL = "_domainkey"
DMARC_LABEL = "_dmarc"
MTA_STS_LABEL = "_mta-sts"
BIMI_LABEL = "_bimi"
TLSRPT_LABEL = "_smtp._tls"
MTA_STS_POLICY_URL = "https://mta-sts.{domain}/.well-known/mta-sts.txt"

# SPF Constants
SPF_MAX_LOOKUPS = 10  # RFC 7208 limit for DNS lookups

# BIMI Constants
BIMI_SVG_MAX_SIZE = 32 * 1024  # 32 KiB
BIMI_SVG_VERSION = "1.2"
BIMI_SVG_BASE_PROFILE = "tiny-ps"
BIMI_SVG_MEDIA_TYPE = "image/svg+xml"
SVG_NAMESPACE = "http://www.w3.org/2000/svg"
BIMI_SVG_FORBIDDEN_TAGS = frozenset(
    {
        "script",
        "animate",
        "animateColor",
        "animateMotion",
        "animateTransform",
        "set",
        "a",
        "foreignObject",
    }
)
LOGOTYPE_EXTENSION_OID = "1.3.6.1.5.5.7.1.12"  # RFC 3709 logotype (Verified Mark)
MAX_CHAIN_DEPTH = 5

# Trust anchors shipped with the package
DEFAULT_ROOT_CERTS_DIR = Path(__file__).parent / "root_certs"
