"""Tests for @SmartService interface detection."""

import textwrap

from chainscan.detection.smart_service import SmartServiceDetector
from chainscan.models.results import FunctionMetadata
from chainscan.program.builder import build_model_from_sources


def analyze(artifact_id, **sources: str):
    model = build_model_from_sources(
        {f"app/{name}.java": textwrap.dedent(source) for name, source in sources.items()}
    )
    return SmartServiceDetector(model).analyze(artifact_id)


ORDER_SERVICE = """
    package app;

    import dev.myorg.mysection.smart.Function;
    import dev.myorg.mysection.smart.SmartService;

    @SmartService("ordersvc")
    public interface OrderService {
        @Function(id = "create-order", name = "Create order")
        void create(String id);

        @Function(id = Ids.CANCEL)
        void cancel(String id);

        void helper();
    }
"""

UI_IMPL = """
    package app;

    import dev.myorg.mysection.smart.UIService;

    @UIService
    public class OrderServiceImpl implements OrderService {
        public void create(String id) {}
        public void cancel(String id) {}
        public void helper() {}
    }
"""

PLAIN_IMPL = """
    package app;

    public class OrderServiceImpl implements OrderService {
        public void create(String id) {}
        public void cancel(String id) {}
        public void helper() {}
    }
"""


class TestSmartServiceDetection:
    """Tests for finding the interface and its @Function methods."""

    def test_finds_interface_by_artifact_id(self) -> None:
        info = analyze("ordersvc", OrderService=ORDER_SERVICE, OrderServiceImpl=PLAIN_IMPL)

        assert info is not None
        assert info.service_id == "ordersvc"
        assert info.interface_name == "app.OrderService"
        assert info.is_ui_service is False

    def test_artifact_id_match_ignores_case(self) -> None:
        info = analyze("OrderSvc", OrderService=ORDER_SERVICE)

        assert info is not None
        assert info.interface_name == "app.OrderService"

    def test_function_methods_keyed_by_signature(self) -> None:
        """Only @Function methods are listed; missing attributes fall back."""
        info = analyze("ordersvc", OrderService=ORDER_SERVICE)

        assert info.function_methods == {
            "app.OrderService.create(java.lang.String)": FunctionMetadata(
                id="create-order", name="Create order"
            ),
            "app.OrderService.cancel(java.lang.String)": FunctionMetadata(
                id="Ids.CANCEL", name="cancel"
            ),
        }

    def test_ui_service_on_implementing_class(self) -> None:
        """A UI service reports no function methods."""
        info = analyze("ordersvc", OrderService=ORDER_SERVICE, OrderServiceImpl=UI_IMPL)

        assert info.is_ui_service is True
        assert info.function_methods == {}

    def test_ui_service_on_interface(self) -> None:
        source = ORDER_SERVICE.replace(
            '@SmartService("ordersvc")',
            '@dev.myorg.mysection.smart.UIService\n    @SmartService("ordersvc")',
        )

        info = analyze("ordersvc", OrderService=source)

        assert info.is_ui_service is True

    def test_no_matching_interface(self) -> None:
        assert analyze("billing", OrderService=ORDER_SERVICE) is None

    def test_no_artifact_id(self) -> None:
        assert analyze(None, OrderService=ORDER_SERVICE) is None
