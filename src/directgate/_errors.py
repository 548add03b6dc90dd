from __future__ import annotations


class DirectGateError(Exception):
    """Base class for all directgate errors."""


class DirectGateMisconfiguration(DirectGateError):
    """Raised when the gate is configured with invalid options.

    These are raised eagerly while building a ``GateConfig`` or gate so
    problems surface at startup rather than on the first request.
    """
