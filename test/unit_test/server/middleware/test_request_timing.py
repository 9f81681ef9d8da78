"""Unit tests for the request timing middleware."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import Request
from starlette.responses import Response

from disaster_tracking.server.middleware.request_timing import RequestTimingMiddleware

MIDDLEWARE = "disaster_tracking.server.middleware.request_timing"


@pytest.fixture
def mock_request():
    request = AsyncMock(spec=Request)
    request.method = "GET"
    request.url.path = "/api/v1/unit/list"
    request.state = MagicMock()
    return request


class TestRequestTimingDispatch:
    @pytest.mark.asyncio
    async def test_successful_request_is_reported(self, mock_request):
        async def call_next(request):
            return Response(content="ok", status_code=200)

        middleware = RequestTimingMiddleware(app=AsyncMock())

        with patch(f"{MIDDLEWARE}.log_api_request") as mock_log:
            response = await middleware.dispatch(mock_request, call_next)

        assert response.status_code == 200
        assert float(response.headers["X-Process-Time"]) >= 0
        kwargs = mock_log.call_args[1]
        assert kwargs["method"] == "GET"
        assert kwargs["path"] == "/api/v1/unit/list"
        assert kwargs["status_code"] == 200

    @pytest.mark.asyncio
    async def test_failed_request_is_reported_as_500_and_reraised(self, mock_request):
        async def call_next(request):
            raise RuntimeError("boom")

        middleware = RequestTimingMiddleware(app=AsyncMock())

        with patch(f"{MIDDLEWARE}.log_api_request") as mock_log, patch(f"{MIDDLEWARE}.logger") as mock_logger:
            with pytest.raises(RuntimeError):
                await middleware.dispatch(mock_request, call_next)

        assert mock_log.call_args[1]["status_code"] == 500
        mock_logger.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_slow_request_warns(self, mock_request):
        async def call_next(request):
            return Response(status_code=204)

        middleware = RequestTimingMiddleware(app=AsyncMock())

        with patch(f"{MIDDLEWARE}.log_api_request"), patch(f"{MIDDLEWARE}.logger") as mock_logger:
            with patch(f"{MIDDLEWARE}.time") as mock_time:
                mock_time.time.side_effect = [0.0, 2.0]
                await middleware.dispatch(mock_request, call_next)

        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args[1]["extra"]["duration_ms"] == 2000.0


class TestRequestTimingInApp:
    @pytest.mark.asyncio
    async def test_process_time_header(self, client):
        response = await client.get("http://localhost/health")
        assert "X-Process-Time" in response.headers
