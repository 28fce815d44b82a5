"""Tests for service dependency usage detection."""

import textwrap
from pathlib import Path

import pytest

from chainscan.analysis.callgraph import CallChainWalker
from chainscan.detection.services import ServiceDetector
from chainscan.models.usage import ServiceUsage, UsageType
from chainscan.program.builder import build_model_from_sources
from chainscan.program.model import ConstructorCall, Expression, ExpressionKind, Invocation, Position

BROKEN_AT = Position(file=Path("app/Broken.java"), line=3)


def detect(source: str, service_ids=("MDZ017J",)) -> list[ServiceUsage]:
    model = build_model_from_sources({"app/Accounts.java": textwrap.dedent(source)})
    return ServiceDetector(model, CallChainWalker(model)).detect(service_ids)


ACCOUNTS = """
    package app;

    import dev.myorg.services.mdz017j.client.LedgerClient;
    import dev.myorg.services.mdz017j.util.LedgerUtils;
    import static dev.myorg.services.mdz017j.util.Checks.verify;

    public class Accounts {
        public void open() {
            LedgerClient client = new LedgerClient();
            client.post("opened");
        }

        public void audit() {
            LedgerUtils.format("x");
            verify();
        }
    }
"""


class TestServiceDetection:
    """Tests for the three kinds of service usage."""

    def test_usage_kinds_in_detection_order(self) -> None:
        """Instantiations come first, then method calls, then static calls."""
        usages = detect(ACCOUNTS)

        assert [(u.usage_type, u.target_class, u.target_method) for u in usages] == [
            (UsageType.INSTANTIATION, "LedgerClient", None),
            (UsageType.METHOD_CALL, "LedgerClient", "post"),
            (UsageType.STATIC_CALL, "LedgerUtils", "format"),
            (UsageType.STATIC_CALL, "Checks", "verify"),
        ]

    def test_service_id_and_package(self) -> None:
        """The service package is derived from the lowercased service id."""
        usages = detect(ACCOUNTS)

        assert {u.service_id for u in usages} == {"MDZ017J"}
        assert {u.service_package for u in usages} == {"dev.myorg.services.mdz017j"}

    def test_usage_location_and_chain(self) -> None:
        usage = next(u for u in detect(ACCOUNTS) if u.target_method == "format")

        assert usage.location.class_name == "app.Accounts"
        assert usage.location.method_name == "audit"
        assert [e.method_signature for e in usage.call_chain] == ["audit()"]

    def test_package_prefix_must_end_at_segment(self) -> None:
        """mdz017jx is not part of service mdz017j."""
        usages = detect(
            """
            package app;

            import dev.myorg.services.mdz017jx.Other;

            public class Near {
                public void run() {
                    new Other();
                    Other.call();
                }
            }
            """
        )

        assert usages == []

    def test_undeclared_service_is_ignored(self) -> None:
        assert detect(ACCOUNTS, service_ids=("ABC123",)) == []

    def test_no_service_ids(self) -> None:
        assert detect(ACCOUNTS, service_ids=()) == []

    def test_multiple_services(self) -> None:
        """Each usage is attributed to the service whose package contains it."""
        usages = detect(
            """
            package app;

            import dev.myorg.services.aaa.A;
            import dev.myorg.services.bbb.B;

            public class Both {
                public void run() {
                    new A();
                    new B();
                }
            }
            """,
            service_ids=("BBB", "AAA"),
        )

        assert [(u.service_id, u.target_class) for u in usages] == [("AAA", "A"), ("BBB", "B")]

    def test_usage_in_constructor_has_empty_chain(self) -> None:
        """Usages outside methods still count, with an empty call chain."""
        usages = detect(
            """
            package app;

            import dev.myorg.services.mdz017j.client.LedgerClient;

            public class Holder {
                private final LedgerClient client = new LedgerClient();
            }
            """
        )

        assert len(usages) == 1
        assert usages[0].location.method_name == "unknown"
        assert usages[0].call_chains == ((),)
        assert usages[0].call_chain == ()


class TestMalformedExpressions:
    """One bad expression is reported and does not stop detection."""

    @pytest.mark.parametrize(
        ("kind", "broken"),
        [
            ("constructor call", ConstructorCall(static_type=5, position=BROKEN_AT)),
            (
                "invocation",
                Invocation(
                    name="post",
                    target=Expression(kind=ExpressionKind.VARIABLE_READ, static_type=5),
                    position=BROKEN_AT,
                ),
            ),
            ("static invocation", Invocation(name="verify", declaring_type=5, position=BROKEN_AT)),
        ],
    )
    def test_malformed_expression_is_skipped(self, kind: str, broken) -> None:
        model = build_model_from_sources({"app/Accounts.java": textwrap.dedent(ACCOUNTS)})
        if isinstance(broken, ConstructorCall):
            model.constructor_calls.insert(0, broken)
        else:
            model.invocations.insert(0, broken)
        detector = ServiceDetector(model, CallChainWalker(model))

        usages = detector.detect(["MDZ017J"])

        assert len(usages) == 4
        assert any(w.startswith(f"Skipped {kind} at app/Broken.java:3") for w in detector.warnings)
