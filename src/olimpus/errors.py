"""Exception hierarchy for Olimpus routing.

Semantic configuration problems (cycles, bad references, bad regex flags)
are not exceptions: the validator returns them as structured results so the
host can report every problem at once. The exceptions here cover the cases
that are genuinely exceptional.
"""


class OlimpusError(Exception):
    """Base class for all Olimpus errors."""
    pass


class ConfigurationError(OlimpusError):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


class RoutingError(OlimpusError):
    """Raised when routing cannot complete due to a caller error."""
    pass


class AgentNotRegisteredError(RoutingError, KeyError):
    """Raised when resolve() is called for a meta-agent with no definition.

    This signals a bug in the caller, not a bad configuration.
    """

    def __init__(self, name: str):
        super().__init__(f'Meta-agent "{name}" not registered')
        self.name = name

    def __str__(self) -> str:
        return self.args[0]
