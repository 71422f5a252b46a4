"""
Per-run context for release-flow.

A ``ResolutionRun`` is built once when an event is handled and passed to
every component. It owns the parser memo and the tag snapshot, so two runs
never share mutable state.
"""

from release_flow.branch_validator import BranchStateValidator
from release_flow.pipeline import BranchPipeline
from release_flow.tag_inventory import TagInventory
from release_flow.version_parser import VersionParser


class ResolutionRun:
    """Short-lived context of one resolution run.

    Args:
        hgit: Git executor
        pipeline (BranchPipeline): Supported branches
        prefix (str): Configured version tag prefix
    """

    def __init__(self, hgit, pipeline: BranchPipeline, prefix: str):
        self.hgit = hgit
        self.pipeline = pipeline
        self.parser = VersionParser(prefix)
        self.inventory = TagInventory(hgit, self.parser, pipeline.tracked_kinds)
        self.validator = BranchStateValidator(pipeline)

    def tag(self, version) -> str:
        "Prefixed tag name for a version."
        return self.parser.add_prefix(version)
