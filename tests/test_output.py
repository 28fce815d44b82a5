"""Tests for the output module."""

import io
import json
from datetime import datetime
from pathlib import Path

import pytest
from rich.console import Console

from chainscan.models.results import AnalysisMetadata, AnalysisReport, FunctionMetadata, SmartServiceInfo
from chainscan.models.usage import (
    CallChainEntry,
    EventPublishUsage,
    FunctionClientUsage,
    ServiceUsage,
    SourceLocation,
    TopicResolutionStatus,
    UsageType,
    Visibility,
)
from chainscan.output.json_writer import load_report, write_report
from chainscan.output.tree import build_report_tree, build_summary_table


def render(renderable) -> str:
    console = Console(file=io.StringIO(), width=200, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


def entry(method: str, line: int, is_entry_point: bool, **kwargs) -> CallChainEntry:
    return CallChainEntry(
        class_name="app.Billing",
        method_signature=method,
        visibility=Visibility.PUBLIC if is_entry_point else Visibility.PRIVATE,
        line_number=line,
        is_entry_point=is_entry_point,
        **kwargs,
    )


@pytest.fixture
def report() -> AnalysisReport:
    location = SourceLocation("app/Billing.java", "app.Billing", "charge", 12)
    chain = (entry("charge(app.Order)", 11, False), entry("pay()", 5, True))
    other = (entry("charge(app.Order)", 11, False), entry("retry()", 20, True, ambiguous_overload=True))
    return AnalysisReport(
        project_path=Path("/work/ordersvc"),
        analyzed_at=datetime(2024, 5, 1, 12, 0, 0),
        metadata=AnalysisMetadata(
            total_files_scanned=3,
            total_classes_analyzed=4,
            total_methods_analyzed=9,
            warnings=["Circular reference detected in app.Loop.ping()"],
            usage_counts={"function_clients": 1, "services": 1, "event_publish": 1},
            analysis_duration_ms=42,
            has_circular_references=True,
            cache_stats={"cached_methods": 2, "total_callers": 2},
        ),
        function_client_usages=[
            FunctionClientUsage(
                location=location,
                call_chains=(chain, other),
                function_id="Pay",
                method_name="executeAsyncOnOrAfter",
                input_type="app.Order",
                has_scheduling=True,
                scheduling_expression="Instant.now()",
            )
        ],
        service_usages=[
            ServiceUsage(
                location=location,
                call_chains=(chain,),
                service_id="MDZ017J",
                service_package="dev.myorg.services.mdz017j",
                usage_type=UsageType.METHOD_CALL,
                target_class="LedgerClient",
                target_method="post",
            )
        ],
        event_publish_usages=[
            EventPublishUsage(
                location=location,
                call_chains=((),),
                topic_name="topic",
                topic_status=TopicResolutionStatus.UNKNOWN_VARIABLE,
                topic_variable_type="java.lang.String",
                message_data_type="app.Order",
            )
        ],
        smart_service=SmartServiceInfo(
            service_id="ordersvc",
            is_ui_service=False,
            interface_name="app.OrderService",
            function_methods={
                "app.OrderService.create(java.lang.String)": FunctionMetadata("create-order", "Create")
            },
        ),
    )


class TestReportDict:
    """Tests for the JSON shape of reports."""

    def test_top_level_sections(self, report: AnalysisReport) -> None:
        data = report.to_dict()

        assert data["version"] == "1.0"
        assert data["project"] == str(Path("/work/ordersvc"))
        assert data["analyzed_at"] == "2024-05-01T12:00:00"
        assert data["metadata"]["usage_counts"] == {
            "function_clients": 1,
            "services": 1,
            "event_publish": 1,
        }
        assert data["smart_service"]["function_methods"] == {
            "app.OrderService.create(java.lang.String)": {"id": "create-order", "name": "Create"}
        }

    def test_usage_carries_primary_and_all_chains(self, report: AnalysisReport) -> None:
        """call_chain is the first of call_chains."""
        usage = report.to_dict()["function_client_usages"][0]

        assert len(usage["call_chains"]) == 2
        assert usage["call_chain"] == usage["call_chains"][0]
        assert usage["call_chain"][-1] == {
            "class_name": "app.Billing",
            "method_signature": "pay()",
            "visibility": "public",
            "line_number": 5,
            "is_entry_point": True,
            "ambiguous_overload": False,
        }

    def test_enums_serialize_as_values(self, report: AnalysisReport) -> None:
        data = report.to_dict()

        assert data["service_usages"][0]["usage_type"] == "method-call"
        assert data["event_publish_usages"][0]["topic_status"] == "unknown-variable"
        assert data["event_publish_usages"][0]["call_chain"] == []

    def test_smart_service_omitted_when_absent(self, report: AnalysisReport) -> None:
        report.smart_service = None

        assert "smart_service" not in report.to_dict()


class TestWriteReport:
    """Tests for write_report and load_report."""

    def test_writes_valid_json(self, tmp_path: Path, report: AnalysisReport) -> None:
        output = tmp_path / "out" / "report.json"

        write_report(report, output)

        data = json.loads(output.read_text())
        assert data["metadata"]["has_circular_references"] is True
        assert data["metadata"]["cache_stats"] == {"cached_methods": 2, "total_callers": 2}

    def test_load_returns_dict_form(self, tmp_path: Path, report: AnalysisReport) -> None:
        output = tmp_path / "report.json"
        write_report(report, output)

        assert load_report(output) == report.to_dict()


class TestRendering:
    """Tests for the rich tree and summary table."""

    def test_summary_table(self, report: AnalysisReport) -> None:
        text = render(build_summary_table(report.to_dict()))

        assert "Analysis Summary" in text
        assert "Function client usages" in text
        assert "42 ms" in text
        assert "yes" in text

    def test_tree_groups_usages(self, report: AnalysisReport) -> None:
        text = render(build_report_tree(report.to_dict()))

        assert "Function clients" in text
        assert "Pay.executeAsyncOnOrAfter(app.Order)" in text
        assert "MDZ017J method-call LedgerClient.post()" in text
        assert "topic [unknown-variable]" in text
        assert "SmartService ordersvc (service): app.OrderService" in text
        assert "ENTRY POINT" not in text

    def test_tree_with_chains(self, report: AnalysisReport) -> None:
        text = render(build_report_tree(report.to_dict(), show_chains=True))

        assert "app.Billing.pay()" in text
        assert "ENTRY POINT" in text
        assert "chain 2" in text
        assert "ambiguous overload" in text
        assert "no containing method" in text
