class StoreUnavailable(Exception):
    """A read against the fee record store failed."""

    def __init__(self, message: str = "Fee record store unavailable") -> None:
        super().__init__(message)
        self.message = message
