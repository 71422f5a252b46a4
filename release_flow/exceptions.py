"""
Exceptions for release-flow.

Every error raised by the engine carries a short ``context`` naming the
operation that failed, so the orchestrator can report ``context: message``
on the pull request instead of a stack trace.
"""

from typing import Optional


class ReleaseFlowError(Exception):
    """Base exception for release-flow operations."""

    def __init__(self, message: str, context: str = "release-flow",
                 original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.context = context
        self.original_error = original_error

    def __str__(self) -> str:
        return self.message


class ConfigurationError(ReleaseFlowError):
    """Raised when configuration inputs are invalid."""

    def __init__(self, message: str, original_error=None):
        super().__init__(message, "configuration", original_error)


class UnsupportedEventError(ReleaseFlowError):
    """Raised when the triggering event is not a pull request event."""

    def __init__(self, event_name: str):
        self.event_name = event_name
        super().__init__(
            f"Only pull_request events are supported, got: {event_name}",
            "validateEvent"
        )


class UnsupportedBranchError(ReleaseFlowError):
    """Raised when the target branch is outside the configured set."""

    def __init__(self, branch: str, supported):
        self.branch = branch
        self.supported = list(supported)
        super().__init__(
            f"Unsupported branch: {branch} (supported: {', '.join(self.supported)}), "
            "skipping version management",
            "validateBranch"
        )


class VersionParsingError(ReleaseFlowError):
    """Raised when a version that must be usable cannot be parsed."""

    def __init__(self, version: str, context: str = "parseVersion"):
        self.version = version
        super().__init__(f"Invalid version: {version}", context)


class TagInventoryError(ReleaseFlowError):
    """Raised when the tag listing itself fails (fatal)."""

    def __init__(self, message: str, original_error=None):
        super().__init__(message, "initializeTagInventory", original_error)


class BranchStateError(ReleaseFlowError):
    """Raised when the branch state gate rejects a promotion."""

    def __init__(self, message: str, target_branch: str, latest_tag: str, latest_kind: str):
        self.target_branch = target_branch
        self.latest_tag = latest_tag
        self.latest_kind = latest_kind
        super().__init__(message, "validateBranchVersionState")


class BaseVersionError(ReleaseFlowError):
    """Raised when no usable base version exists for the target branch."""

    def __init__(self, message: str, target_branch: str):
        self.target_branch = target_branch
        super().__init__(message, f"getBaseVersion-{target_branch}")


class VersionUpdateError(ReleaseFlowError):
    """Raised when committing, tagging or pushing a new version fails."""

    def __init__(self, message: str, original_error=None):
        super().__init__(message, "updateVersionAndCreateTag", original_error)


class MergeConflictError(ReleaseFlowError):
    """Raised when every conflict resolution rung failed for a sync edge."""

    def __init__(self, source_branch: str, target_branch: str, original_error=None):
        self.source_branch = source_branch
        self.target_branch = target_branch
        super().__init__(
            f"Unable to resolve merge conflicts {source_branch} -> {target_branch} "
            "automatically, an issue was created for manual intervention",
            "handleMergeConflict",
            original_error
        )


class CodeHostError(ReleaseFlowError):
    """Raised when a call to the code host API fails."""

    def __init__(self, message: str, original_error=None):
        super().__init__(message, "codeHost", original_error)
