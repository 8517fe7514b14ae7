"""Tests for the Elasticsearch bulk client adapter."""

from bulk_log_sink import client as client_module
from bulk_log_sink.client import ElasticsearchBulkClient


class _StubResponse:
    def __init__(self, body):
        self.body = body


class _StubElasticsearch:
    instances: list = []

    def __init__(self, hosts, request_timeout=None):
        self.hosts = hosts
        self.request_timeout = request_timeout
        self.bulk_calls: list = []
        self.closed = False
        _StubElasticsearch.instances.append(self)

    def bulk(self, operations):
        self.bulk_calls.append(operations)
        return _StubResponse({"errors": False, "items": [{"index": {"status": 201}}]})

    def close(self):
        self.closed = True


def test_bulk_forwards_operations_and_unwraps_body(monkeypatch):
    monkeypatch.setattr(client_module, "Elasticsearch", _StubElasticsearch)

    client = ElasticsearchBulkClient("http://es:9200", request_timeout=4.0)
    ops = ['{"index": {"_index": "i"}}', '{"message": "m"}']
    result = client.bulk(ops)

    es = _StubElasticsearch.instances[-1]
    assert es.hosts == "http://es:9200"
    assert es.request_timeout == 4.0
    assert es.bulk_calls == [ops]
    assert result == {"errors": False, "items": [{"index": {"status": 201}}]}


def test_close_closes_underlying_client(monkeypatch):
    monkeypatch.setattr(client_module, "Elasticsearch", _StubElasticsearch)

    client = ElasticsearchBulkClient("http://es:9200")
    client.close()

    assert _StubElasticsearch.instances[-1].closed
