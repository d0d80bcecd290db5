"""Invoice domain exceptions."""

from __future__ import annotations


class InvoiceNotFound(Exception):
    pass


class InvoiceAlreadyExists(Exception):
    """The order or errand has already been invoiced."""


class InvoiceSourceNotFound(Exception):
    """The order or errand to invoice does not exist."""


class InvoicePermissionDenied(Exception):
    pass
