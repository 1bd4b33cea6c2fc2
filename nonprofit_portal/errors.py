# -*- coding: utf-8 -*-
"""
Domain errors raised by the engines and translated into redirects by the routes.

Every error carries a human-readable ``message`` that is safe to show to the
user; none of them should ever surface as a 5xx.
"""


class PortalError(Exception):
    message = "Something went wrong. Please try again."

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class NotFound(PortalError):
    message = "The requested item does not exist."


class AlreadyStarted(PortalError):
    message = "This event has already started."


class DeadlinePassed(PortalError):
    message = "The registration deadline for this event has passed."


class AlreadyRegistered(PortalError):
    message = "You are already registered for this event."


class AlreadyExists(PortalError):
    message = "A survey has already been submitted for this registration."


class CapacityReached(PortalError):
    message = "This event is full."


class RegistrationCancelled(PortalError):
    message = "This registration was cancelled."


class Unauthorized(PortalError):
    message = ""


class Forbidden(PortalError):
    message = "Authentication error"


class StoreUnavailable(PortalError):
    message = "The service is temporarily unavailable. Please try again."
