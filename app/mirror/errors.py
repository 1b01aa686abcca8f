class MirrorError(Exception):
    """Base class for failures that end a mirrored request with a fixed status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnmappedHostError(MirrorError):
    status_code = 404

    def __init__(self, hostname: str):
        super().__init__(f"No proxy prefix configured for host '{hostname}'")
        self.hostname = hostname


class UnresolvedTargetError(MirrorError):
    """A prefix matched but the table has no origin for it."""

    status_code = 404

    def __init__(self, prefix: str):
        super().__init__(f"No origin configured for proxy prefix '{prefix}'")
        self.prefix = prefix


class UpstreamError(MirrorError):
    status_code = 502


class UpstreamTimeoutError(UpstreamError):
    status_code = 504


class MalformedRequestURLError(UpstreamError):
    pass


class ClientDisconnectedError(MirrorError):
    # nginx convention for "client closed request"
    status_code = 499
