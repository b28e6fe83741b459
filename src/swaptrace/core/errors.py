class SwapTraceError(Exception):
    pass


class DataSourceError(SwapTraceError):
    pass


class RateLimitError(DataSourceError):
    pass


class NoUserWalletError(SwapTraceError, ValueError):
    """Raised when leg reconstruction is asked to run without any user wallet."""
