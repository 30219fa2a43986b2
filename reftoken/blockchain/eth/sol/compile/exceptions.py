

class CompilationError(RuntimeError):
    """
    Raised when there is a problem compiling the harness contracts
    or with the expected compiler configuration.
    """
