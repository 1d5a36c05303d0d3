from __future__ import annotations


class DispatchError(Exception):
    """Base class for every validation failure raised by the engine."""

    kind = "DispatchError"


class InvalidCoordinate(DispatchError):
    kind = "InvalidCoordinate"


class DuplicateId(DispatchError):
    kind = "DuplicateId"


class NotFound(DispatchError):
    kind = "NotFound"


class InvalidAmount(DispatchError):
    kind = "InvalidAmount"


class InvalidResponder(DispatchError):
    kind = "InvalidResponder"


class InvalidTransition(DispatchError):
    kind = "InvalidTransition"


class InvalidRadius(DispatchError):
    kind = "InvalidRadius"


class InvalidProfile(DispatchError):
    kind = "InvalidProfile"


class ActiveRequestExists(DispatchError):
    kind = "ActiveRequestExists"
