"""Exceptions raised by the KMB ETA client."""

from typing import Optional


class KMBEtaError(Exception):
    """Base class for all query failures."""


class MalformedRecord(KMBEtaError):
    """An upstream record is missing a required field or has the wrong type."""

    def __init__(self, kind: str, index: Optional[int], reason: str):
        self.kind = kind
        self.index = index  # None when the response body itself is malformed
        self.reason = reason
        if index is None:
            super().__init__(f"Malformed {kind} response body: {reason}")
        else:
            super().__init__(f"Malformed {kind} record at index {index}: {reason}")


class UnknownRoute(KMBEtaError, ValueError):
    """No route variant has the requested route number."""

    def __init__(self, route: str):
        self.route = route
        super().__init__(f"(route: {route}) does not exist!")


class UnknownRouteVariant(KMBEtaError, ValueError):
    """No route variant matches the requested route, direction and service type."""

    def __init__(self, route: str, direction: str, service_type: int):
        self.route = route
        self.direction = direction
        self.service_type = service_type
        super().__init__(
            f"(route: {route}, direction: {direction}, service_type: {service_type}) does not exist!"
        )


class UnknownStop(KMBEtaError, ValueError):
    """A route-stop entry references a stop missing from the stop listing."""

    def __init__(
        self,
        stop_id: str,
        route: Optional[str] = None,
        direction: Optional[str] = None,
        service_type: Optional[int] = None,
    ):
        self.stop_id = stop_id
        self.route = route
        self.direction = direction
        self.service_type = service_type
        if route is None:
            super().__init__(f"Stop {stop_id} not found")
        else:
            super().__init__(
                f"(route: {route}, direction: {direction}, service_type: {service_type}) "
                f"references unknown stop {stop_id}"
            )


class InvalidFeedTimestamp(KMBEtaError):
    """The arrival feed's generated timestamp is absent or unparseable."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Failed to parse feed timestamp {value!r}")
