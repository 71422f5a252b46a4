"""
Tests for the main,beta,alpha pipeline: alpha is the entry stage, beta a
promotion stage.
"""

import pytest

from release_flow.exceptions import BaseVersionError, BranchStateError
from release_flow.upgrade_strategies import UpgradeManager

THREE_STAGES = ['main', 'beta', 'alpha']


class TestThreeStagePipeline:
    """feature -> alpha -> beta -> main."""

    def calculate(self, run, target, source, labels=()):
        return UpgradeManager(run).calculate_new_version(target, source, list(labels))

    def test_feature_into_alpha(self, make_run):
        run = make_run(['v1.0.0'], branches=THREE_STAGES)
        assert self.calculate(run, 'alpha', 'feature/x', ['minor']) == 'v1.1.0-alpha.0'

    def test_alpha_counter(self, make_run):
        run = make_run(['v1.1.0-alpha.0', 'v1.0.0'], branches=THREE_STAGES)
        assert self.calculate(run, 'alpha', 'feature/y', ['patch']) == 'v1.1.0-alpha.1'

    def test_alpha_promoted_into_beta(self, make_run):
        run = make_run(['v1.1.0-alpha.2', 'v1.0.0'], branches=THREE_STAGES)
        assert self.calculate(run, 'beta', 'alpha') == 'v1.1.0-beta.0'

    def test_fix_on_beta_increments_counter(self, make_run):
        run = make_run(['v1.1.0-beta.0', 'v1.1.0-alpha.2', 'v1.0.0'], branches=THREE_STAGES)
        assert self.calculate(run, 'beta', 'fix/typo') == 'v1.1.0-beta.1'

    def test_fix_on_beta_requires_matching_alpha_line(self, make_run):
        run = make_run(['v1.2.0-alpha.0', 'v1.1.0-beta.0', 'v1.0.0'], branches=THREE_STAGES)
        with pytest.raises(BaseVersionError):
            self.calculate(run, 'beta', 'fix/typo')

    def test_beta_without_alpha_version_rejected(self, make_run):
        run = make_run(['v1.0.0'], branches=THREE_STAGES)
        with pytest.raises(BaseVersionError):
            self.calculate(run, 'beta', 'alpha')

    def test_beta_cannot_skip_alpha(self, make_run):
        """Latest tag is a release: beta first needs an alpha version."""
        run = make_run(['v1.1.0', 'v1.1.0-beta.0', 'v1.1.0-alpha.0'], branches=THREE_STAGES)
        with pytest.raises(BranchStateError):
            self.calculate(run, 'beta', 'alpha')

    def test_beta_released_on_main(self, make_run):
        run = make_run(['v1.1.0-beta.1', 'v1.1.0-alpha.2', 'v1.0.0'], branches=THREE_STAGES)
        assert self.calculate(run, 'main', 'beta') == 'v1.1.0'

    def test_main_cannot_release_alpha(self, make_run):
        run = make_run(['v1.1.0-alpha.2', 'v1.1.0-beta.0', 'v1.0.0'], branches=THREE_STAGES)
        with pytest.raises(BranchStateError):
            self.calculate(run, 'main', 'beta')
