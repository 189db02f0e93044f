"""Exception types shared across NebulaDocs layers."""


class NebulaError(Exception):
    """Base class for all NebulaDocs errors."""
    pass


class ProjectNotFoundError(NebulaError, KeyError):
    """Raised when a project id is not registered in the store."""

    def __init__(self, project_id: str):
        super().__init__(project_id)
        self.project_id = project_id

    def __str__(self) -> str:
        return f"Project not found: {self.project_id}"


class MalformedDataError(NebulaError):
    """Raised when a persisted record cannot be parsed."""
    pass


class InvalidProjectRecordError(NebulaError):
    """Raised when an imported project record lacks metadata or content."""
    pass


class ConfigurationError(NebulaError):
    """Raised when the settings file is not usable."""
    pass


class AssistError(NebulaError):
    """Raised when the generative-assist collaborator fails."""
    pass


class AssistUnavailableError(AssistError):
    """Raised when the collaborator is not configured or cannot serve a task."""
    pass
