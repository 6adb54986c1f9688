class TierUnavailable(Exception):
    """A tier could not serve the request; the executor moves on to the next one."""


class MalformedRemoteResponse(TierUnavailable):
    """The remote function answered, but not with a usable payload."""


class TiersExhausted(Exception):
    def __init__(self, op: str, failures: list[tuple[str, str]]):
        self.op = op
        self.failures = failures
        detail = ", ".join(f"{tier}: {reason}" for tier, reason in failures) or "no tiers"
        super().__init__(f"{op}: all tiers failed ({detail})")


class InvalidUpload(ValueError):
    pass


class UploadFailed(Exception):
    pass


class SaveFailed(Exception):
    pass
