import httpx

from tablero.clients.http_client import CircuitBreaker, HTTPClient
from tablero.core.config import Settings


def test_get_retries_transient_status():
    answers = [httpx.Response(503), httpx.Response(200, json=[])]

    def handler(request):
        return answers.pop(0)

    client = HTTPClient(Settings(http_max_retries=2, http_backoff_factor=0), transport=httpx.MockTransport(handler))
    response = client.get("https://demo.supabase.co/rest/v1/CortesMexico")
    assert response.status_code == 200
    assert answers == []


def test_client_errors_are_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, json={"message": "bad filter"})

    client = HTTPClient(Settings(http_max_retries=3, http_backoff_factor=0), transport=httpx.MockTransport(handler))
    assert client.request("get", "https://demo.supabase.co/rest/v1/x").status_code == 400
    assert len(calls) == 1


def test_circuit_breaker_trips_and_resets():
    breaker = CircuitBreaker(failure_threshold=2, reset_timeout=60)
    breaker.record_failure("h")
    assert breaker.can_request("h")
    breaker.record_failure("h")
    assert not breaker.can_request("h")
    breaker.record_success("h")
    assert breaker.can_request("h")
