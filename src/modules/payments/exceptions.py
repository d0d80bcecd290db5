"""Payment domain exceptions."""

from __future__ import annotations


class PaymentOrderNotFound(Exception):
    pass


class PaymentUnavailable(Exception):
    """The client platform cannot take card payments."""


class PaymentProviderError(Exception):
    """The hosted payment function failed or answered without a client secret."""


class InvalidMobileMoneyNumber(Exception):
    pass


class PaymentIntentMismatch(Exception):
    """The reported intent is not the one recorded on the order."""


class InvalidPaymentStatus(Exception):
    pass
