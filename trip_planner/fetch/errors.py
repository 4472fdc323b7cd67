"""Failures of the third-party services behind trip planning."""


class UpstreamError(Exception):
    """An external API could not be reached or answered with an error."""


class PlacesUnavailable(UpstreamError):
    pass


class WeatherUnavailable(UpstreamError):
    pass


class FlightLookupError(UpstreamError):
    pass


class FlightNotFound(FlightLookupError):
    pass
