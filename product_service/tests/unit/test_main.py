from unittest.mock import patch

from product_service.app.main import create_app, run


class TestApplicationEntryPoint:
    """Tests for application assembly and the uvicorn entry point."""

    def test_run_serves_application_with_uvicorn(self):
        with patch("uvicorn.run") as mock_run:
            run()

        mock_run.assert_called_once()
        args, kwargs = mock_run.call_args
        assert args == ("product_service.app.main:app",)
        assert kwargs["port"] == 8000
        assert kwargs["log_level"] == "info"

    def test_create_app_registers_routes(self):
        paths = {route.path for route in create_app().routes}

        assert "/health" in paths
        assert "/api/v1/products/" in paths
        assert "/api/v1/products/{product_id}" in paths
