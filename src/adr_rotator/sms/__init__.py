"""
Configuration Manager site access.

- AdminServiceClient: WMI classes over the AdminService REST route
- content_template: read and rewrite an ADR's ContentTemplate XML
"""

from .client import AdminServiceClient, odata_quote
from .content_template import get_package_id, set_package_id

__all__ = [
    "AdminServiceClient",
    "odata_quote",
    "get_package_id",
    "set_package_id",
]
