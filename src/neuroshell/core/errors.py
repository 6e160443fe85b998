# src/neuroshell/core/errors.py
from typing import Optional


class NeuroShellError(Exception):
    """Base class for every error the command engine raises on purpose."""


class ParseError(NeuroShellError):
    """A command line could not be parsed. `position` is a 0-based index into the line."""

    def __init__(self, message: str, position: Optional[int] = None):
        self.message = message
        self.position = position
        if position is not None:
            message = f"{message} at position {position}"
        super().__init__(message)


class UnknownCommandError(NeuroShellError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unknown command: {name}")


class InvalidNameError(NeuroShellError):
    pass


class DuplicateRegistrationError(NeuroShellError):
    pass


class ServiceUnavailableError(NeuroShellError):
    """Service is unregistered, not initialized, or its registry failed bring-up."""


class IncorrectServiceTypeError(ServiceUnavailableError):
    pass


class ServiceInitializationError(NeuroShellError):
    def __init__(self, service_name: str, cause: Exception):
        self.service_name = service_name
        self.cause = cause
        super().__init__(f"failed to initialize service {service_name}: {cause}")


class VariableError(NeuroShellError):
    pass


class VariableNotFoundError(VariableError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"variable '{name}' not found")


class CommandError(NeuroShellError):
    """Raised by a command body when it cannot do what was asked."""


class ExitRequested(Exception):
    """Signals the shell to stop. Not a NeuroShellError, so \\try never swallows it."""


class ModelError(NeuroShellError):
    """Invalid, duplicate or missing model configuration."""


class ExecutionLimitError(NeuroShellError):
    """One input line ran more pending entries than `execution.max_entries` allows."""
