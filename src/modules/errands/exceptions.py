"""Errand domain exceptions, translated to HTTP responses by the views."""

from __future__ import annotations


class ErrandNotFound(Exception):
    pass


class InvalidErrandStatus(Exception):
    """The requested transition is not allowed from the current status."""


class ErrandAlreadyAssigned(Exception):
    pass


class NotAssignedRunner(Exception):
    """Only the assigned runner (or anyone while unassigned) may advance."""


class CategoryNotFound(Exception):
    pass


class SubcategoryNotFound(Exception):
    """Unknown, inactive, or belongs to another category."""


class InvalidSchedule(Exception):
    pass


class OutsideServiceArea(Exception):
    pass
