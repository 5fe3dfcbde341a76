"""
Tests for the prompt builder: label conversion, metric serialization and
the overall prompt layout.
"""

import pytest

from hubauditor.models.enums import AuditType
from hubauditor.models.schemas import AccountContext
from hubauditor.services.contact_quality import calculate_contact_quality
from hubauditor.services.prompt_builder import (
    REQUESTED_SECTIONS,
    build_prompt,
    format_label,
    format_metrics,
    format_value,
)
from hubauditor.services.sync_integrity import calculate_sync_integrity
from hubauditor.tests.conftest import FIXED_NOW, make_record


class TestFormatLabel:

    @pytest.mark.parametrize('key, label', [
        ('totalContacts', 'Total Contacts'),
        ('missingEmailPct', 'Missing Email %'),
        ('avgDealAgeByStage', 'Average Deal Age By Stage'),
        ('hardBounceRate', 'Hard Bounce Rate'),
        ('duplicates', 'Duplicates'),
        ('lead', 'Lead'),
    ])
    def test_labels(self, key, label):
        assert format_label(key) == label


class TestFormatMetrics:

    def test_scalar_and_nested_fields(self):
        text = format_metrics({
            'totalContacts': 4,
            'missingEmailPct': 25.0,
            'lifecycleDistribution': {'lead': 2, 'customer': 1},
        })

        assert text.splitlines() == [
            '- Total Contacts: 4',
            '- Missing Email %: 25.0',
            '',
            'Lifecycle Distribution:',
            '  - Lead: 2',
            '  - Customer: 1',
        ]

    def test_empty_distribution(self):
        assert format_metrics({'failedRecords': {}}).splitlines()[-1] == '  - (none)'

    def test_values(self):
        assert format_value(True) == 'Yes'
        assert format_value(False) == 'No'
        assert format_value(1 / 3) == '0.33'
        assert format_value('Unknown') == 'Unknown'


class TestBuildPrompt:

    def test_prompt_contains_metrics_and_headings(self):
        metrics = calculate_contact_quality([make_record(email='a@x.com')], now=FIXED_NOW)

        prompt = build_prompt(AuditType.CONTACT_QUALITY, metrics)

        assert 'AUDIT TYPE: Contact Data Quality' in prompt
        assert 'QUANTITATIVE METRICS:' in prompt
        assert '- Total Contacts: 1' in prompt
        assert '- Missing Email %: 0.0' in prompt
        assert 'ACCOUNT CONTEXT' not in prompt
        for title in REQUESTED_SECTIONS:
            assert f'## {title}' in prompt
        positions = [prompt.index(f'## {title}') for title in REQUESTED_SECTIONS]
        assert positions == sorted(positions)

    def test_account_context(self):
        context = AccountContext(industry='SaaS', companyType='B2B', teamSize='10-50')

        prompt = build_prompt(AuditType.SYNC_INTEGRITY, calculate_sync_integrity(), context)

        assert 'ACCOUNT CONTEXT:' in prompt
        assert '- Industry: SaaS' in prompt
        assert '- Estimated ARR: Not specified' in prompt
        assert 'for a SaaS B2B business' in prompt
        assert 'typical SaaS standards' in prompt
        assert '- Data Available: No' in prompt
