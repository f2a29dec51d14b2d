"""SVG Tiny Portable/Secure (SVG Tiny-PS) profile check for BIMI logos.

Rules enforced:
- file size must not exceed 32 KiB
- root element is <svg> with version="1.2" and baseProfile="tiny-ps"
- the root element must not carry x= or y= attributes
- a <title> element is present
- no scripts, animations or interactive elements
- no references to external resources
"""

import logging
import xml.etree.ElementTree as ET

from ..constants import (
    BIMI_SVG_BASE_PROFILE,
    BIMI_SVG_FORBIDDEN_TAGS,
    BIMI_SVG_MAX_SIZE,
    BIMI_SVG_VERSION,
)

logger = logging.getLogger(__name__)

_EXTERNAL_PREFIXES = ("http:", "https:", "//")


def _local_name(name: str) -> str:
    """Strip an ElementTree ``{namespace}`` prefix."""
    return name.rsplit("}", 1)[-1]


def _is_forbidden_tag(name: str) -> bool:
    return name in BIMI_SVG_FORBIDDEN_TAGS or name.startswith("animate")


def _external_href(element: ET.Element) -> str | None:
    for attr_name, value in element.attrib.items():
        # href, xlink:href and any other prefixed *:href
        if _local_name(attr_name) == "href" or attr_name.endswith(":href"):
            if value.strip().lower().startswith(_EXTERNAL_PREFIXES):
                return value
    return None


def check_bimi_svg(data: bytes) -> list[str]:
    """
    Validate an SVG document against the BIMI profile.

    Args:
        data: Raw SVG bytes

    Returns:
        List of problems; empty when the document conforms
    """
    if len(data) > BIMI_SVG_MAX_SIZE:
        return [f"SVG file is {len(data)} bytes, the limit is {BIMI_SVG_MAX_SIZE} bytes (32 KiB)."]

    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        return [f"SVG is not well-formed XML: {e}"]

    if _local_name(root.tag) != "svg":
        return [f"Root element must be <svg>, not <{_local_name(root.tag)}>."]

    problems = []

    version = root.get("version")
    if version != BIMI_SVG_VERSION:
        problems.append(f'SVG version must be "{BIMI_SVG_VERSION}", not "{version}".')

    base_profile = root.get("baseProfile")
    if base_profile != BIMI_SVG_BASE_PROFILE:
        problems.append(f'SVG baseProfile must be "{BIMI_SVG_BASE_PROFILE}", not "{base_profile}".')

    for attribute in ("x", "y"):
        if root.get(attribute) is not None:
            problems.append(f"The <svg> element must not have an {attribute}= attribute.")

    if not any(_local_name(child.tag) == "title" for child in root):
        problems.append("SVG must contain a <title> element.")

    for element in root.iter():
        if not isinstance(element.tag, str):
            continue
        name = _local_name(element.tag)
        if _is_forbidden_tag(name):
            problems.append(f"SVG contains a forbidden <{name}> element.")
        href = _external_href(element)
        if href is not None:
            problems.append(f"SVG references an external resource: {href}")

    if problems:
        logger.debug(f"SVG profile check failed: {'; '.join(problems)}")
    return problems
