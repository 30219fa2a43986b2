##################
# Harness Errors #
##################


class HarnessError(Exception):
    """Base class for all errors raised while driving a harness scenario."""


class StartupError(HarnessError):
    """The ephemeral backend could not be started or reached."""


class DependencyError(HarnessError):
    """The naming-service dependency could not be resolved."""


class DeploymentError(HarnessError):
    """A contract deployment reverted or was never mined."""


class ExecutionError(HarnessError):
    """A contract call or transaction reverted."""


class TransactionTimeout(HarnessError, TimeoutError):
    """A bounded wait on the backend was exceeded."""


class DeploymentTimeout(DeploymentError, TransactionTimeout):
    """A deployment transaction was not mined within the deployment timeout."""


class HarnessStateError(HarnessError):
    """An operation was attempted in a harness state that does not allow it."""

    def __init__(self, operation: str, state, *args):
        self.operation = operation
        self.state = state
        message = f"Cannot {operation} while the harness is {state.value}"
        super().__init__(message, *args)

