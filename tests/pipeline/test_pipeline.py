"""
Tests for BranchPipeline - roles and directions of the supported branches.
"""

import pytest

from release_flow.exceptions import ConfigurationError, UnsupportedBranchError
from release_flow.pipeline import BranchPipeline, StageRole


class TestBranchPipeline:

    def test_two_stage_roles(self):
        pipeline = BranchPipeline(['main', 'beta'])
        assert pipeline.role('main') is StageRole.RELEASE
        assert pipeline.role('beta') is StageRole.ENTRY
        assert pipeline.tracked_kinds == ['release', 'beta']

    def test_three_stage_roles(self):
        pipeline = BranchPipeline(['main', 'beta', 'alpha'])
        assert pipeline.role('beta') is StageRole.PROMOTION
        assert pipeline.entry_branch == 'alpha'
        assert pipeline.promotion_source('main') == 'beta'
        assert pipeline.promotion_source('beta') == 'alpha'
        assert pipeline.promotion_source('alpha') is None

    def test_downstream_chain(self):
        pipeline = BranchPipeline(['main', 'beta', 'alpha'])
        assert pipeline.downstream_chain('main') == ['beta', 'alpha']
        assert pipeline.downstream_chain('beta') == ['alpha']
        assert pipeline.downstream_chain('alpha') == []

    def test_kind(self):
        pipeline = BranchPipeline(['main', 'beta'])
        assert pipeline.kind('main') == 'release'
        assert pipeline.kind('beta') == 'beta'

    def test_whitespace_is_ignored(self):
        assert BranchPipeline([' main', 'beta ', '']).branches == ('main', 'beta')

    @pytest.mark.parametrize('branches', [['main'], [], ['main', 'main']])
    def test_invalid_pipelines(self, branches):
        with pytest.raises(ConfigurationError):
            BranchPipeline(branches)

    def test_unsupported_branch(self):
        pipeline = BranchPipeline(['main', 'beta'])
        assert 'develop' not in pipeline
        with pytest.raises(UnsupportedBranchError) as excinfo:
            pipeline.check('develop')
        assert excinfo.value.supported == ['main', 'beta']
