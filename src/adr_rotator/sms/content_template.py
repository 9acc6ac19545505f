"""Read and rewrite the package reference in an ADR content template.

The template is an opaque ``ContentActionXML`` fragment owned by the site,
e.g. ``<ContentActionXML><PackageID>PS100045</PackageID>...</ContentActionXML>``.
Only the package identifier element is touched.
"""

import io
import re
import xml.etree.ElementTree as xml_et
from typing import Optional

from adr_rotator.core.exceptions import ContentTemplateError

PACKAGE_ID_TAG = "PackageID"

# ElementTree generates ns<N> prefixes itself and refuses to register them
_RESERVED_PREFIX = re.compile(r"ns\d+$")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _parse(xml: Optional[str]) -> xml_et.Element:
    if not xml or not xml.strip():
        raise ContentTemplateError("Content template is empty")
    try:
        # Keep the template's own prefixes when serializing back
        for _, (prefix, uri) in xml_et.iterparse(io.StringIO(xml), events=("start-ns",)):
            if not _RESERVED_PREFIX.match(prefix):
                xml_et.register_namespace(prefix, uri)
        return xml_et.fromstring(xml)
    except xml_et.ParseError as e:
        raise ContentTemplateError(f"Content template is not valid XML: {e}") from e
    except ValueError as e:
        raise ContentTemplateError(f"Content template namespaces cannot be handled: {e}") from e


def _find_package_element(root: xml_et.Element) -> Optional[xml_et.Element]:
    wanted = PACKAGE_ID_TAG.lower()
    for element in root.iter():
        if _local_name(element.tag).lower() == wanted:
            return element
    return None


def get_package_id(xml: str) -> Optional[str]:
    """Package ID the template currently points at, or None."""
    element = _find_package_element(_parse(xml))
    if element is None or element.text is None:
        return None
    return element.text.strip() or None


def set_package_id(xml: str, package_id: str) -> str:
    """Return the template with its package ID replaced by ``package_id``."""
    if not package_id:
        raise ContentTemplateError("Package ID cannot be empty")
    root = _parse(xml)
    element = _find_package_element(root)
    if element is None:
        element = xml_et.SubElement(root, PACKAGE_ID_TAG)
    element.text = package_id
    return xml_et.tostring(root, encoding="unicode")
