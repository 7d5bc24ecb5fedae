"""Exception types raised by the gateway."""


class GatewayError(Exception):
    """Base class for errors surfaced by the gateway."""


class ConfigurationError(GatewayError):
    """Required configuration is missing or invalid."""


class MissingParameterError(GatewayError):
    """A required query or body field was not supplied."""


class BrokerError(GatewayError):
    """An upstream broker call failed."""


class BrokerTimeoutError(BrokerError):
    """An upstream broker call did not finish within the configured timeout."""


class BrokerResponseError(BrokerError):
    """The broker returned a payload missing required fields."""


class LoginPageError(GatewayError):
    """The broker login page could not be opened locally."""
