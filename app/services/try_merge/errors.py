"""
Try-merge failure types.

Everything here except ``JobStoreError`` ends up as a ``failed`` job with a
human-readable ``error_message``. ``JobStoreError`` means our own bookkeeping
is broken and is propagated to the caller.
"""


class TryMergeError(Exception):
    """A try-merge attempt failed; the message is shown to the PR author."""


class ChecksNotPassedError(TryMergeError):
    """The try-branch's combined status was something other than ``success``."""

    def __init__(self, state: str):
        super().__init__(f"Try merge failed with status: {state or '<empty>'}")
        self.state = state


class StatusPollTimeoutError(TryMergeError):
    """Checks were still pending when the status deadline ran out."""

    def __init__(self, branch: str, waited: float, last_state: str):
        super().__init__(
            f"Timed out after {waited:.0f}s waiting for checks on {branch} "
            f"(last status: {last_state})"
        )
        self.branch = branch
        self.waited = waited
        self.last_state = last_state


class TryMergeTimeoutError(TryMergeError):
    """The whole attempt exceeded its deadline."""


class JobStoreError(Exception):
    """A try-merge job could not be written to or read from the database."""
