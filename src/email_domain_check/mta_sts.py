"""MTA-STS (RFC 8461) policy fetching, parsing and MX filtering."""

import logging
from dataclasses import dataclass, field
from typing import Literal

from .address import Address, Target
from .constants import DEFAULT_HTTP_TIMEOUT, MTA_STS_POLICY_URL
from .http_utils import Fetcher, fetch_bytes
from .resolver import MxRecord

logger = logging.getLogger(__name__)

PolicyMode = Literal["enforce", "testing", "none"]
_MODES = ("enforce", "testing", "none")


@dataclass
class MtaStsPolicy:
    """A fully specified MTA-STS policy file."""

    version: str
    mode: PolicyMode
    max_age: int
    mx: list[str] = field(default_factory=list)


def parse_mta_sts_policy(text: str) -> MtaStsPolicy | None:
    """
    Parse a policy file body.

    Returns:
        MtaStsPolicy when version, mode, mx and max_age are all present,
        None otherwise.
    """
    version: str | None = None
    mode: PolicyMode | None = None
    max_age: int | None = None
    mx: list[str] = []

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        key, _, value = line.partition(":")
        key, value = key.strip().lower(), value.strip()
        if not key or not value:
            continue

        if key == "version":
            version = value
        elif key == "mode":
            if value in _MODES:
                mode = value  # type: ignore[assignment]
        elif key == "mx":
            mx.append(value.lower().rstrip("."))
        elif key == "max_age":
            try:
                max_age = int(value)
            except ValueError:
                logger.debug(f"Ignoring invalid MTA-STS max_age: {value}")

    if version and mode and mx and max_age is not None:
        return MtaStsPolicy(version=version, mode=mode, max_age=max_age, mx=mx)
    return None


async def get_mta_sts_policy(
    target: Target,
    fetch: Fetcher | None = None,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
) -> MtaStsPolicy | None:
    """
    Download and parse the MTA-STS policy of a domain.

    Any failure (IP target, network error, HTTP error, unparsable policy)
    yields None so callers can fail open.
    """
    addr = Address.load(target)
    if addr.is_ip:
        return None

    url = MTA_STS_POLICY_URL.format(domain=addr.hostname)
    if fetch is None:
        content, error = await fetch_bytes(url, timeout=timeout)
    else:
        content, error = await fetch(url, timeout)

    if content is None:
        logger.debug(f"MTA-STS policy unavailable for {addr.hostname}: {error}")
        return None

    policy = parse_mta_sts_policy(content.decode("utf-8", errors="replace"))
    if policy is None:
        logger.debug(f"MTA-STS policy for {addr.hostname} is incomplete or invalid")
    return policy


def is_mx_allowed(mx_host: str, policy: MtaStsPolicy) -> bool:
    """Match an MX host against the policy's mx patterns, ignoring case."""
    host = mx_host.lower().rstrip(".")
    for pattern in policy.mx:
        if pattern.startswith("*."):
            if host.endswith(pattern[1:]):
                return True
        elif host == pattern:
            return True
    return False


def filter_mx(records: list[MxRecord], policy: MtaStsPolicy | None) -> list[MxRecord]:
    """
    Apply an MTA-STS policy to an MX record list.

    - enforce: only allowed hosts, possibly none (delivery blocked)
    - testing: full list, blocked hosts are only logged
    - none or no policy: full list
    """
    if policy is None or policy.mode == "none":
        return records

    if policy.mode == "testing":
        blocked = [record.exchange for record in records if not is_mx_allowed(record.exchange, policy)]
        if blocked:
            logger.warning(
                f"MTA-STS testing mode: {len(blocked)} MX records would be blocked: "
                f"{', '.join(blocked)}"
            )
        return records

    return [record for record in records if is_mx_allowed(record.exchange, policy)]
