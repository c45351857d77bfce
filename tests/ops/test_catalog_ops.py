"""Tests for catalog and scraper operations."""

from __future__ import annotations

from labrules.ops.catalog import get_template, list_global_parameters, list_parameter_definitions, list_templates
from labrules.ops.requests import GenerateScraperRequest, GetTemplateRequest, ListParameterDefinitionsRequest
from labrules.ops.scraper import generate_scraper


class TestParameterDefinitions:
    def test_all(self, ctx):
        result = list_parameter_definitions(ctx)
        assert result.success is True
        assert result.total == 9
        assert result.has_more is False

    def test_scope(self, ctx):
        globals_ = list_parameter_definitions(ctx, ListParameterDefinitionsRequest(scope="global"))
        specific = list_parameter_definitions(ctx, ListParameterDefinitionsRequest(scope="specific"))
        assert [d.name for d in globals_.data] == ["patient_age", "patient_gender"]
        assert specific.total == 7

    def test_category_case_insensitive(self, ctx):
        result = list_parameter_definitions(ctx, ListParameterDefinitionsRequest(category="medical history"))
        assert [d.name for d in result.data] == ["entecedent", "entecedent_date"]

    def test_invalid_scope(self, ctx):
        result = list_parameter_definitions(ctx, ListParameterDefinitionsRequest(scope="local"))
        assert result.error.code == "VALIDATION_FAILED"


class TestGlobalsAndTemplates:
    def test_global_parameters(self, ctx):
        result = list_global_parameters(ctx)
        assert [g.name for g in result.data] == ["patient_age", "patient_gender", "questionnaire"]

    def test_list_templates(self, ctx):
        result = list_templates(ctx)
        blood = next(t for t in result.data if t.key == "blood")
        assert blood.parameter_count == 3
        assert blood.parameters == ["globule_rouge", "hemoglobine", "plaquettes"]
        assert result.total == 4

    def test_get_template(self, ctx):
        assert get_template(ctx, GetTemplateRequest(key="urine")).data.name == "Urine Analysis"

    def test_get_unknown_template(self, ctx):
        result = get_template(ctx, GetTemplateRequest(key="saliva"))
        assert result.error.code == "NOT_FOUND"
        assert result.error.details["key"] == "saliva"


class TestGenerateScraper:
    def test_generates(self, ctx):
        result = generate_scraper(
            ctx,
            GenerateScraperRequest(
                target_url=" https://lab.example/results ",
                mappings=[{"param": "glucose", "selector": "#glu"}],
            ),
        )
        assert result.success is True
        assert result.data.target_url == "https://lab.example/results"
        assert result.data.parameters == ["glucose"]
        assert 'parameters["glucose"]' in result.data.code
        assert result.warnings == []

    def test_warns_about_skipped_mappings(self, ctx):
        result = generate_scraper(
            ctx,
            GenerateScraperRequest(
                target_url="https://lab.example",
                mappings=[{"param": "glucose", "selector": ""}],
            ),
        )
        assert result.warnings == [
            "1 incomplete mapping(s) ignored",
            "No mappings given; the script extracts nothing",
        ]

    def test_blank_url(self, ctx):
        result = generate_scraper(ctx, GenerateScraperRequest(target_url=""))
        assert result.error.code == "VALIDATION_FAILED"
        assert result.error.details["field"] == "target_url"

    def test_bad_parameter_name(self, ctx):
        result = generate_scraper(
            ctx,
            GenerateScraperRequest(target_url="https://lab.example", mappings=[{"param": "1st", "selector": "#a"}]),
        )
        assert result.error.code == "VALIDATION_FAILED"
