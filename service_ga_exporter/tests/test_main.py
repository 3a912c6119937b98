"""
Unit tests for the exporter service.
"""

import pytest
from fastapi.testclient import TestClient

from service_ga_exporter.app.main import GAExporterService
from shared.errors import CredentialsError, RegistrationError


class TestGAExporterService:
    """Test cases for GAExporterService."""

    @pytest.fixture
    def service(self, settings, exporter_config, fake_source, collector_registry):
        """Create GAExporterService with an injected source."""
        return GAExporterService(
            settings=settings,
            exporter_config=exporter_config,
            source=fake_source,
            registry=collector_registry,
        )

    @pytest.fixture
    def client(self, service):
        """Create test client; the lifespan (poll loop) is not started."""
        return TestClient(service.app)

    def test_service_initialization(self, service):
        """Test configured metrics are registered as scalars at startup."""
        assert service.port == 9100
        assert service.gauges.scalar_names() == ["rt:activeUsers", "rt:pageviews"]
        assert service.scheduler.metric_names == ["rt:activeUsers", "rt:pageviews"]
        assert service.scheduler.interval_seconds == 60

    def test_root_endpoint(self, client):
        """Test root endpoint."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "ga-exporter"
        assert data["viewid"] == "ga:12345"
        assert data["metrics"] == ["rt:activeUsers", "rt:pageviews"]
        assert data["series"]["vector"] == []

    def test_health_endpoint(self, client):
        """Test health endpoint."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["dependencies"]["poll_loop"] == "stopped"
        assert data["dependencies"]["scheduler"]["ticks"] == 0

    def test_metrics_endpoint_exports_scalars(self, client):
        """Test scalars are exported with the job label before any fetch."""
        response = client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        body = response.text
        assert 'ga_rt_activeUsers{job="googleAnalytics"} 0.0' in body
        assert "# HELP ga_rt_activeUsers Google Analytics rt:activeUsers" in body

    def test_metrics_endpoint_exports_vectors(self, service, client):
        """Test vector series appear once a worker has written them."""
        service.worker.apply("rt:pageviews", [["US", "mobile", "7"], ["BR", "mobile", "2"]])

        body = client.get("/metrics").text

        assert 'ga_rt__mobile{job="googleAnalytics",category="US"} 7.0' in body
        assert 'ga_rt__mobile{job="googleAnalytics",category="BR"} 2.0' in body

    def test_lifespan_runs_poll_loop(self, service, fake_source):
        """Test the poll loop starts with the app and polls every metric."""
        fake_source.results["rt:activeUsers"] = [["42"]]

        with TestClient(service.app) as client:
            # Workers run on the client's event loop; poll until they have written
            for _ in range(100):
                if 'ga_rt_activeUsers{job="googleAnalytics"} 42.0' in client.get("/metrics").text:
                    break
            health = client.get("/health").json()

        assert health["dependencies"]["poll_loop"] == "ok"
        assert service.gauges.get_value("rt:activeUsers") == 42.0
        assert service.scheduler.loop_task is None

    def test_missing_credentials_fail_startup(self, settings, exporter_config, collector_registry):
        """Test the service refuses to start without credentials."""
        with pytest.raises(CredentialsError):
            GAExporterService(
                settings=settings,
                exporter_config=exporter_config,
                registry=collector_registry,
            )

    def test_conflicting_metric_names_fail_startup(self, settings, exporter_config, fake_source, collector_registry):
        """Test metrics whose series names collide are fatal at startup."""
        config = exporter_config.model_copy(update={"metrics": ["rt:a_b", "rt_a:b"]})

        with pytest.raises(RegistrationError):
            GAExporterService(
                settings=settings,
                exporter_config=config,
                source=fake_source,
                registry=collector_registry,
            )
