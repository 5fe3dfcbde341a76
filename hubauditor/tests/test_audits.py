"""
Pytest test module for the five audit calculators and their formatters.

Test Categories:
- TestMetricUtils: percentage, distribution and severity helpers
- TestContactQuality: duplicates, missing fields, bounces, staleness
- TestPipelineHealth: amounts, stage ages, stuck deals
- TestCompanyEnrichment: missing firmographics, coverage, enrichment score
- TestLeadScoring: score buckets, conversion time, engagement
- TestSyncIntegrity: placeholder behavior
- TestPercentageBounds: every percentage stays in [0, 100]
"""

from datetime import timedelta

import pytest

from hubauditor.models.enums import RecordKind, Severity
from hubauditor.services.company_enrichment import (
    calculate_company_enrichment,
    format_company_enrichment,
)
from hubauditor.services.contact_quality import (
    calculate_contact_quality,
    count_duplicate_emails,
    format_contact_quality,
)
from hubauditor.services.lead_scoring import (
    HIGH_SCORE,
    LOW_SCORE,
    MEDIUM_SCORE,
    NO_SCORE,
    calculate_lead_scoring,
    format_lead_scoring,
)
from hubauditor.services.metric_utils import (
    distribution,
    percentage,
    round_half_up,
    severity_above,
    severity_below,
)
from hubauditor.services.pipeline_health import (
    calculate_pipeline_health,
    format_pipeline_health,
    parse_amount,
)
from hubauditor.services.sync_integrity import calculate_sync_integrity, format_sync_integrity
from hubauditor.tests.conftest import FIXED_NOW, days_ago, make_record


def group_titles(groups):
    return [group.title for group in groups]


def card(groups, label):
    for group in groups:
        for metric in group.metrics:
            if metric.label == label:
                return metric
    raise AssertionError(f"No metric card labelled {label!r}")


# =============================================================================
# Helpers
# =============================================================================


class TestMetricUtils:

    def test_percentage_of_empty_total_is_zero(self):
        assert percentage(0, 0) == 0.0
        assert percentage(5, 0) == 0.0

    def test_percentage_is_clamped(self):
        assert percentage(3, 2) == 100.0
        assert percentage(1, 4) == 25.0

    def test_distribution_puts_missing_values_in_unknown(self):
        records = [
            make_record(lifecyclestage='lead'),
            make_record(lifecyclestage='lead'),
            make_record(lifecyclestage='customer'),
            make_record(lifecyclestage='  '),
            make_record(),
        ]
        counts = distribution(records, 'lifecyclestage')
        assert counts == {'lead': 2, 'customer': 1, 'Unknown': 2}
        assert sum(counts.values()) == len(records)

    def test_severity_thresholds_are_exclusive(self):
        assert severity_above(5, 5, 2) == Severity.WARNING
        assert severity_above(5.1, 5, 2) == Severity.CRITICAL
        assert severity_above(2, 5, 2) == Severity.GOOD
        assert severity_below(60, 60, 80) == Severity.WARNING
        assert severity_below(59.9, 60, 80) == Severity.CRITICAL
        assert severity_below(80, 60, 80) == Severity.GOOD

    def test_round_half_up(self):
        assert round_half_up(15.5) == 16
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2


# =============================================================================
# Contact Quality
# =============================================================================


class TestContactQuality:

    def test_scenario_duplicate_missing_and_bounce(self):
        contacts = [
            make_record(email='a@x.com'),
            make_record(email='A@x.com'),
            make_record(),
            make_record(email='b@x.com', hs_email_bounce='true'),
        ]

        metrics = calculate_contact_quality(contacts, now=FIXED_NOW)

        assert metrics.totalContacts == 4
        assert metrics.duplicates == 1
        assert metrics.missingEmail == 1
        assert metrics.missingEmailPct == 25.0
        assert metrics.hardBounceRate == 25.0

    def test_duplicates_count_n_minus_one_per_email(self):
        contacts = [
            make_record(email='dup@x.com'),
            make_record(email='DUP@x.com'),
            make_record(email=' dup@x.com '),
            make_record(email='other@x.com'),
            make_record(email='other@x.com'),
            make_record(email='unique@x.com'),
            make_record(),
            make_record(),
        ]
        assert count_duplicate_emails(contacts) == 3

    def test_stale_includes_missing_last_modified(self):
        contacts = [
            make_record(lastmodifieddate=days_ago(91)),
            make_record(lastmodifieddate=days_ago(10)),
            make_record(),
            make_record(lastmodifieddate='not a date'),
        ]

        metrics = calculate_contact_quality(contacts, now=FIXED_NOW)

        assert metrics.staleContacts == 3
        assert metrics.staleContactsPct == 75.0

    def test_custom_stale_window(self):
        contacts = [make_record(lastmodifieddate=days_ago(45))]
        assert calculate_contact_quality(contacts, now=FIXED_NOW, stale_days=30).staleContacts == 1
        assert calculate_contact_quality(contacts, now=FIXED_NOW, stale_days=60).staleContacts == 0

    def test_unassigned_and_missing_phone(self):
        contacts = [
            make_record(hubspot_owner_id='7', phone='555'),
            make_record(hubspot_owner_id='', phone=None),
        ]

        metrics = calculate_contact_quality(contacts, now=FIXED_NOW)

        assert metrics.unassignedContacts == 1
        assert metrics.unassignedPct == 50.0
        assert metrics.missingPhone == 1

    def test_only_exact_true_counts_as_bounce(self):
        contacts = [
            make_record(hs_email_bounce='true'),
            make_record(hs_email_bounce='TRUE'),
            make_record(hs_email_bounce='True'),
            make_record(hs_email_bounce='false'),
        ]
        assert calculate_contact_quality(contacts, now=FIXED_NOW).hardBounceRate == 25.0

    def test_empty_list(self):
        metrics = calculate_contact_quality([], now=FIXED_NOW)
        assert metrics.totalContacts == 0
        assert metrics.duplicateRate == 0
        assert metrics.staleContactsPct == 0
        assert metrics.lifecycleDistribution == {}

    def test_format_groups_and_severities(self):
        contacts = [
            make_record(email='a@x.com', lifecyclestage='lead'),
            make_record(email='A@x.com', lifecyclestage='lead'),
            make_record(lifecyclestage='customer'),
            make_record(email='b@x.com', hs_email_bounce='true'),
        ]

        groups = format_contact_quality(calculate_contact_quality(contacts, now=FIXED_NOW))

        assert group_titles(groups) == [
            'Overview', 'Data Quality Issues', 'Contact Management', 'Lifecycle Distribution',
        ]
        assert card(groups, 'Duplicate Contacts').severity == Severity.CRITICAL
        assert card(groups, 'Missing Email').severity == Severity.CRITICAL
        assert card(groups, 'Hard Bounce Rate').value == '25.0%'
        lifecycle = groups[-1].metrics
        assert [m.label for m in lifecycle] == ['lead', 'customer', 'Unknown']
        assert lifecycle[0].percentage == 50.0

    def test_lifecycle_group_is_truncated_to_top_five(self):
        contacts = [make_record(lifecyclestage=f'stage-{i}') for i in range(8)]
        groups = format_contact_quality(calculate_contact_quality(contacts, now=FIXED_NOW))
        assert len(groups[-1].metrics) == 5


# =============================================================================
# Pipeline Health
# =============================================================================


class TestPipelineHealth:

    def test_scenario_amounts(self):
        deals = [
            make_record(RecordKind.DEAL, amount='100'),
            make_record(RecordKind.DEAL, amount=''),
            make_record(RecordKind.DEAL, amount='abc'),
        ]

        metrics = calculate_pipeline_health(deals, now=FIXED_NOW)

        assert metrics.totalPipelineValue == 100
        assert metrics.missingAmount == 2
        assert metrics.missingAmountPct == pytest.approx(66.7, abs=0.05)

    @pytest.mark.parametrize('raw, expected', [
        ('1,250.50', 1250.5),
        (' 42 ', 42.0),
        ('nan', None),
        ('inf', None),
        ('12abc', None),
        (None, None),
    ])
    def test_parse_amount(self, raw, expected):
        assert parse_amount(raw) == expected

    def test_average_age_by_stage_skips_undated_deals(self):
        deals = [
            make_record(RecordKind.DEAL, dealstage='qualified', createdate=days_ago(10)),
            make_record(RecordKind.DEAL, dealstage='qualified', createdate=days_ago(21)),
            make_record(RecordKind.DEAL, dealstage='closedwon'),
        ]

        metrics = calculate_pipeline_health(deals, now=FIXED_NOW)

        assert metrics.avgDealAgeByStage == {'qualified': 16}
        assert metrics.dealsByStage == {'qualified': 2, 'closedwon': 1}

    def test_stuck_deals(self):
        deals = [
            make_record(RecordKind.DEAL, hs_lastmodifieddate=days_ago(31)),
            make_record(RecordKind.DEAL, hs_lastmodifieddate=days_ago(3)),
            make_record(RecordKind.DEAL),
            make_record(RecordKind.DEAL, hs_lastmodifieddate=days_ago(1), closedate=days_ago(-30)),
        ]

        metrics = calculate_pipeline_health(deals, now=FIXED_NOW)

        assert metrics.stuckDeals == 2
        assert metrics.stuckDealsPct == 50.0
        assert metrics.missingCloseDate == 3

    def test_format(self):
        deals = [
            make_record(RecordKind.DEAL, amount='2500', dealstage='a', createdate=days_ago(120)),
            make_record(RecordKind.DEAL, amount='500', dealstage='b', createdate=days_ago(5),
                        hs_lastmodifieddate=days_ago(1), closedate=days_ago(-10)),
        ]

        groups = format_pipeline_health(calculate_pipeline_health(deals, now=FIXED_NOW))

        assert group_titles(groups) == [
            'Overview', 'Pipeline Issues', 'Deals by Stage', 'Average Deal Age by Stage',
        ]
        assert card(groups, 'Total Pipeline Value').value == '$3.0K'
        assert card(groups, 'Stuck Deals (30+ days)').severity == Severity.CRITICAL
        assert card(groups, 'Missing Close Date').severity == Severity.CRITICAL
        assert card(groups, 'Missing Amount').severity == Severity.GOOD
        ages = {m.label: m for m in groups[-1].metrics}
        assert ages['a'].value == '120 days'
        assert ages['a'].severity == Severity.WARNING
        assert ages['b'].severity == Severity.GOOD


# =============================================================================
# Company Enrichment
# =============================================================================


class TestCompanyEnrichment:

    def test_missing_fields_and_score(self):
        companies = [
            make_record(RecordKind.COMPANY, record_id='1', name='Acme', domain='acme.com',
                        industry='SaaS', annualrevenue='1000000', numberofemployees='50'),
            make_record(RecordKind.COMPANY, record_id='2', name='Bare'),
        ]

        metrics = calculate_company_enrichment(companies)

        assert metrics.totalCompanies == 2
        assert metrics.missingIndustry == 1
        assert metrics.missingIndustryPct == 50.0
        assert metrics.missingRevenue == 1
        assert metrics.missingEmployees == 1
        assert metrics.enrichmentScore == pytest.approx(60.0)

    def test_contact_coverage(self):
        companies = [
            make_record(RecordKind.COMPANY, record_id='1'),
            make_record(RecordKind.COMPANY, record_id='2'),
        ]
        contacts = [
            make_record(associatedcompanyid='1'),
            make_record(associatedcompanyid='1'),
            make_record(associatedcompanyid='99'),
            make_record(),
        ]

        assert calculate_company_enrichment(companies, contacts).companyContactCoverage == 50.0

    def test_coverage_is_zero_without_contacts(self):
        companies = [make_record(RecordKind.COMPANY, record_id='1')]
        assert calculate_company_enrichment(companies).companyContactCoverage == 0.0
        assert calculate_company_enrichment(companies, []).companyContactCoverage == 0.0

    def test_format_inverted_thresholds(self):
        companies = [make_record(RecordKind.COMPANY, record_id='1', name='Acme')]
        contacts = [make_record(associatedcompanyid='1')]

        groups = format_company_enrichment(calculate_company_enrichment(companies, contacts))

        assert group_titles(groups) == ['Overview', 'Missing Data', 'Relationship Coverage']
        assert card(groups, 'Overall Enrichment Score').value == '20.0%'
        assert card(groups, 'Overall Enrichment Score').severity == Severity.CRITICAL
        assert card(groups, 'Companies with Contacts').severity == Severity.GOOD
        assert card(groups, 'Missing Industry').severity == Severity.CRITICAL


# =============================================================================
# Lead Scoring
# =============================================================================


class TestLeadScoring:

    def test_score_buckets_first_present_field_wins(self):
        contacts = [
            make_record(hs_lead_score='10'),
            make_record(hubspotscore='50'),
            make_record(hs_lead_score='', hubspotscore='90'),
            make_record(hs_lead_score='75', hubspotscore='5'),
            make_record(),
            make_record(hs_lead_score='abc'),
        ]

        buckets = calculate_lead_scoring(contacts, now=FIXED_NOW).leadScoreDistribution

        assert buckets == {NO_SCORE: 2, LOW_SCORE: 1, MEDIUM_SCORE: 1, HIGH_SCORE: 2}

    def test_bucket_boundaries(self):
        contacts = [
            make_record(hs_lead_score='30'),
            make_record(hs_lead_score='31'),
            make_record(hs_lead_score='70'),
            make_record(hs_lead_score='71'),
        ]

        buckets = calculate_lead_scoring(contacts, now=FIXED_NOW).leadScoreDistribution

        assert buckets[LOW_SCORE] == 1
        assert buckets[MEDIUM_SCORE] == 2
        assert buckets[HIGH_SCORE] == 1

    def test_average_days_to_conversion(self):
        contacts = [
            make_record(lifecyclestage='customer', createdate=days_ago(30),
                        updated_at=FIXED_NOW - timedelta(days=10)),
            make_record(lifecyclestage='customer', createdate=days_ago(41), updated_at=FIXED_NOW),
            make_record(lifecyclestage='lead', createdate=days_ago(400), updated_at=FIXED_NOW),
            make_record(lifecyclestage='customer', updated_at=FIXED_NOW),
        ]

        metrics = calculate_lead_scoring(contacts, now=FIXED_NOW)

        assert metrics.avgTimeToConversion == {'Average Days': 31}

    def test_no_customers_means_zero_days(self):
        metrics = calculate_lead_scoring([make_record(lifecyclestage='lead')], now=FIXED_NOW)
        assert metrics.avgTimeToConversion == {'Average Days': 0}

    def test_engagement_window_is_strict(self):
        contacts = [
            make_record(lastmodifieddate=days_ago(5)),
            make_record(lastmodifieddate=days_ago(30)),
            make_record(lastmodifieddate=days_ago(60)),
            make_record(),
        ]
        assert calculate_lead_scoring(contacts, now=FIXED_NOW).engagementRate == 25.0

    def test_format(self):
        contacts = [make_record(lifecyclestage='lead') for _ in range(4)]

        groups = format_lead_scoring(calculate_lead_scoring(contacts, now=FIXED_NOW))

        assert group_titles(groups) == [
            'Lead Score Distribution', 'Lifecycle Stage Distribution', 'Engagement & Conversion',
        ]
        assert card(groups, NO_SCORE).severity == Severity.WARNING
        assert card(groups, NO_SCORE).percentage == 100.0
        assert card(groups, 'Engagement Rate (30 days)').severity == Severity.CRITICAL
        assert card(groups, 'Avg. Days to Convert').value == 'N/A'


# =============================================================================
# Sync Integrity
# =============================================================================


class TestSyncIntegrity:

    def test_placeholder_when_no_data(self):
        metrics = calculate_sync_integrity()
        assert metrics.dataAvailable is False
        assert metrics.activeIntegrations == 0
        assert metrics.failedRecords == {}
        assert metrics.lastSuccessfulSync == 'Unknown'

    def test_integration_data(self):
        metrics = calculate_sync_integrity({'integrations': [{'name': 'Salesforce'}], 'lastSync': '2024-05-30'})
        assert metrics.dataAvailable is True
        assert metrics.activeIntegrations == 1
        assert metrics.lastSuccessfulSync == '2024-05-30'

    def test_format_placeholder(self):
        groups = format_sync_integrity(calculate_sync_integrity())
        assert group_titles(groups) == ['Integration Overview', 'Sync Health', 'Sync Status', 'Important Note']
        assert card(groups, 'Active Integrations').value == 'Data Not Available'
        assert card(groups, 'Active Integrations').severity == Severity.WARNING


# =============================================================================
# Percentage Bounds
# =============================================================================


class TestPercentageBounds:

    @staticmethod
    def percentages(metrics):
        return [
            value for key, value in metrics.model_dump().items()
            if key.endswith(('Pct', 'Rate', 'Coverage', 'Score')) and isinstance(value, (int, float))
        ]

    @pytest.mark.parametrize('records', [
        [],
        [make_record()],
        [make_record(email='a@x.com', phone='1', hubspot_owner_id='1', lastmodifieddate=days_ago(1))],
        [make_record(email='same@x.com') for _ in range(10)],
    ])
    def test_contact_and_lead_percentages_in_range(self, records):
        for metrics in (
            calculate_contact_quality(records, now=FIXED_NOW),
            calculate_lead_scoring(records, now=FIXED_NOW),
        ):
            values = self.percentages(metrics)
            assert values
            assert all(0 <= value <= 100 for value in values)
            if not records:
                assert all(value == 0 for value in values)

    @pytest.mark.parametrize('count', [0, 1, 7])
    def test_deal_and_company_percentages_in_range(self, count):
        deals = [make_record(RecordKind.DEAL, amount=str(i)) for i in range(count)]
        companies = [make_record(RecordKind.COMPANY, name=str(i)) for i in range(count)]
        for metrics in (
            calculate_pipeline_health(deals, now=FIXED_NOW),
            calculate_company_enrichment(companies, deals),
        ):
            values = self.percentages(metrics)
            assert all(0 <= value <= 100 for value in values)
            if count == 0:
                assert all(value == 0 for value in values)
