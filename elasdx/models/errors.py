from typing import Optional


class ElasdxError(Exception):
    """Base class for every failure the tool reports to the user."""


class TemplateFileError(ElasdxError):
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"failed reading index template {path}: {reason}")


class NotFoundError(ElasdxError):
    """
    The cluster answered 404 for a lookup. Callers use this as a control-flow signal (e.g. an alias that does
    not exist yet) rather than as a failure.
    """

    def __init__(self, operation: str, target: str):
        self.operation = operation
        self.target = target
        super().__init__(f"{target} not found while trying to {operation}")


class ClusterOperationError(ElasdxError):
    def __init__(self, operation: str, target: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.target = target
        self.cause = cause
        message = f"failed {operation} {target}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ProvisioningError(ElasdxError):
    def __init__(self, path: str, cause: BaseException):
        self.path = path
        super().__init__(f"failed creating new index from updated template {path}: {cause}")


class ReindexError(ElasdxError):
    def __init__(self, alias: str, index: str, cause: BaseException):
        self.alias = alias
        self.index = index
        super().__init__(f"failed reindexing to {index} and adding to alias {alias}: {cause}")


class CleanupError(ElasdxError):
    def __init__(self, name: str, cause: BaseException):
        self.name = name
        super().__init__(f"failed cleaning up indices for {name}, not continuing: {cause}")
