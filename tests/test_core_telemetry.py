from unittest.mock import patch

from fastapi import FastAPI

from app.core.telemetry import gateway_calls, setup_telemetry


class TestSetupTelemetry:
    """Test the setup_telemetry function."""

    @patch.dict("os.environ", {}, clear=True)
    @patch("app.core.telemetry.logger")
    def test_no_endpoint(self, mock_logger):
        setup_telemetry(FastAPI())

        mock_logger.warning.assert_called_once()
        assert "No endpoint configured" in str(mock_logger.warning.call_args)

    @patch.dict(
        "os.environ",
        {
            "OTEL_EXPORTER_OTLP_ENDPOINT": "http://localhost:4317",
            "OTEL_EXPORTER_OTLP_INSECURE": "TRUE",
        },
        clear=True,
    )
    @patch("app.core.telemetry.logger")
    @patch("app.core.telemetry.metrics")
    @patch("app.core.telemetry.trace")
    @patch("app.core.telemetry.PeriodicExportingMetricReader")
    @patch("app.core.telemetry.MeterProvider")
    @patch("app.core.telemetry.BatchSpanProcessor")
    @patch("app.core.telemetry.TracerProvider")
    @patch("app.core.telemetry.OTLPMetricExporter")
    @patch("app.core.telemetry.OTLPSpanExporter")
    @patch("app.core.telemetry.SQLAlchemyInstrumentor")
    @patch("app.core.telemetry.FastAPIInstrumentor")
    def test_with_endpoint(
        self,
        mock_fastapi,
        mock_sqlalchemy,
        mock_span_exporter,
        mock_metric_exporter,
        mock_tracer_provider,
        mock_span_processor,
        mock_meter_provider,
        mock_metric_reader,
        mock_trace,
        mock_metrics,
        mock_logger,
    ):
        app = FastAPI()
        if hasattr(setup_telemetry, "_instrumented"):
            del setup_telemetry._instrumented

        setup_telemetry(app)
        setup_telemetry(app)

        mock_span_exporter.assert_called_with(
            endpoint="http://localhost:4317", insecure=True
        )
        mock_trace.set_tracer_provider.assert_called_with(mock_tracer_provider.return_value)
        mock_metrics.set_meter_provider.assert_called_with(mock_meter_provider.return_value)
        mock_fastapi.instrument_app.assert_called_once_with(app, excluded_urls="/health")
        mock_sqlalchemy.return_value.instrument.assert_called_once_with(
            enable_commenter=True
        )
        resource = mock_tracer_provider.call_args.kwargs["resource"]
        assert resource.attributes["service.name"] == "moderation-dashboard"
        del setup_telemetry._instrumented

    @patch.dict("os.environ", {"OTEL_EXPORTER_OTLP_ENDPOINT": "http://localhost:4317"})
    @patch("app.core.telemetry.logger")
    @patch("app.core.telemetry.Resource")
    def test_failure_is_logged(self, mock_resource, mock_logger):
        mock_resource.create.side_effect = RuntimeError("bad resource")

        setup_telemetry(FastAPI())

        mock_logger.error.assert_called_once()
        assert "bad resource" in str(mock_logger.error.call_args)


def test_gateway_counter_accepts_attributes():
    gateway_calls.add(1, {"operation": "query", "collection": "users"})
