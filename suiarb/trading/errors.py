from __future__ import annotations


class ConfigurationError(RuntimeError):
    pass


class DataUnavailableError(RuntimeError):
    def __init__(self, source_uri: str, reason: str = "no data") -> None:
        super().__init__(f"Data source {source_uri} produced no observation: {reason}")
        self.source_uri = source_uri
        self.reason = reason


class InsufficientBalanceError(RuntimeError):
    def __init__(self, *, coin_type: str, requested: int, available: int) -> None:
        super().__init__(
            "Insufficient balance to pay for the trade. "
            f"coin_type={coin_type} needed={requested} found={available}"
        )
        self.coin_type = coin_type
        self.requested = requested
        self.available = available


class GatingBlockedError(RuntimeError):
    def __init__(self, *, pool_uuid: str, coin_type: str, ratio: float, threshold: float) -> None:
        super().__init__(
            f"Imbalance ratio {ratio:.6f} for {coin_type} exceeds threshold {threshold:.6f}"
        )
        self.pool_uuid = pool_uuid
        self.coin_type = coin_type
        self.ratio = ratio
        self.threshold = threshold


class SubmissionError(RuntimeError):
    error_kind = "transient"

    def __init__(self, message: str, *, pool_uuid: str = "", digest: str | None = None) -> None:
        super().__init__(message)
        self.pool_uuid = pool_uuid
        self.digest = digest


class SubmissionRejectedError(SubmissionError):
    error_kind = "input"


class SubmissionFailedError(SubmissionError):
    error_kind = "transient"
