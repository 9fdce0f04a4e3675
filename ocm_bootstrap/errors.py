class BootstrapError(Exception):
    """Base class of every error raised while bootstrapping components."""


class InvalidInputError(BootstrapError):
    pass


class InvalidConstraintError(InvalidInputError):
    pass


class MalformedVersionError(InvalidInputError):
    pass


class MalformedImageReferenceError(InvalidInputError):
    pass


class InvalidConfigDataError(InvalidInputError):
    pass


class NotFoundError(BootstrapError):
    pass


class ComponentNotFoundError(NotFoundError):
    pass


class VersionNotFoundError(NotFoundError):
    pass


class MissingRequiredResourceError(NotFoundError):
    pass


class MissingImageResourceError(NotFoundError):
    pass


class TransientInfraError(BootstrapError):
    """Infrastructure failure that is worth exactly one more attempt."""


class FatalInfraError(BootstrapError):
    pass


class CloneFailedError(FatalInfraError):
    pass


class CommitError(FatalInfraError):
    pass


class PushError(FatalInfraError):
    pass


class ApplyError(FatalInfraError):
    pass


class TemplatingError(FatalInfraError):
    pass


class ManifestSerializationError(FatalInfraError):
    pass


class ResourceAccessError(FatalInfraError):
    pass


class RegistryError(FatalInfraError):
    pass


class RegistryNotFoundError(RegistryError):
    pass


class ProviderError(FatalInfraError):
    pass


class GitError(FatalInfraError):
    pass


class NoGitRepositoryError(GitError):
    """The working copy directory does not hold a Git repository."""


class NoStagedFilesError(GitError):
    """A commit was requested but the written files did not change anything."""


class OperationCancelledError(BootstrapError):
    pass


class ConvergenceTimeoutError(BootstrapError):
    def __init__(self, description: str, timeout: float, last_state: str | None = None):
        message = f"timed out after {timeout:g}s waiting for {description}"
        if last_state:
            message = f"{message}: {last_state}"
        super().__init__(message)
        self.description: str = description
        self.timeout: float = timeout
        self.last_state: str | None = last_state


class ErrorList:
    """Collects errors from independent steps so that all of them get reported."""

    def __init__(self) -> None:
        self._errors: list[Exception] = []

    def add(self, error: Exception) -> None:
        self._errors.append(error)

    def is_empty(self) -> bool:
        return not self._errors

    @property
    def errors(self) -> list[Exception]:
        return list(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __iter__(self):
        return iter(self._errors)

    def __str__(self) -> str:
        return "; ".join(str(e) for e in self._errors)


class HealthCheckTimeoutError(BootstrapError):
    def __init__(self, errors: ErrorList):
        super().__init__(f"failed to report health, please try again later: {errors}")
        self.errors: list[Exception] = errors.errors


class InstallError(BootstrapError):
    """Wraps a failure of one install step with the identifiers it concerned."""

    def __init__(
        self,
        operation: str,
        cause: Exception,
        component: str | None = None,
        version: str | None = None,
        path: str | None = None,
    ):
        details = ", ".join(
            f"{key}={value}"
            for key, value in (("component", component), ("version", version), ("path", path))
            if value
        )
        prefix = f"failed to {operation}"
        if details:
            prefix = f"{prefix} ({details})"
        super().__init__(f"{prefix}: {cause}")
        self.operation: str = operation
        self.cause: Exception = cause
        self.component: str | None = component
        self.version: str | None = version
        self.path: str | None = path
