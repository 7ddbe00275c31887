import json
import httpx
import pytest

from gallery.analysis.vision import VisionClient, KEY_HEADER
from gallery.exceptions import AnalysisUnavailableException, AnalysisEmptyException


def make_client(handler, endpoint="https://vision.test/", key="secret"):
    return VisionClient(endpoint=endpoint, key=key, transport=httpx.MockTransport(handler))


def describe(captions, tags):
    return {"description": {"captions": captions, "tags": tags}, "requestId": "r1"}


def test_analyze_sends_reference_not_bytes():
    seen = {}

    def handler(request: httpx.Request):
        seen["request"] = request
        return httpx.Response(200, json=describe([{"text": "a dog", "confidence": 0.9}], ["dog"]))

    client = make_client(handler)
    client.analyze("https://s3.us-east-1.amazonaws.com/photos/dog.jpg")

    request = seen["request"]
    assert request.method == "POST"
    assert request.url.path == "/vision/v3.2/analyze"
    assert request.url.params["visualFeatures"] == "Description"
    assert request.headers[KEY_HEADER] == "secret"
    assert json.loads(request.content) == {"url": "https://s3.us-east-1.amazonaws.com/photos/dog.jpg"}


def test_analyze_takes_first_caption_and_tags_in_order():
    payload = describe(
        [{"text": "a dog in a field", "confidence": 0.7}, {"text": "a cat", "confidence": 0.95}],
        ["outdoor", "dog", "field", "dog"],
    )
    client = make_client(lambda request: httpx.Response(200, json=payload))

    result = client.analyze("https://example/photos/dog.jpg")
    assert result.caption == "a dog in a field"
    assert result.tags == ["outdoor", "dog", "field", "dog"]


def test_analyze_without_captions_is_empty():
    client = make_client(lambda request: httpx.Response(200, json=describe([], ["dog"])))
    with pytest.raises(AnalysisEmptyException):
        client.analyze("https://example/photos/dog.jpg")


def test_analyze_missing_description_is_empty():
    client = make_client(lambda request: httpx.Response(200, json={"requestId": "r1"}))
    with pytest.raises(AnalysisEmptyException):
        client.analyze("https://example/photos/dog.jpg")


@pytest.mark.parametrize("status", [401, 403, 429, 500])
def test_analyze_http_error_is_unavailable(status):
    client = make_client(lambda request: httpx.Response(status, json={"error": {"code": "x"}}))
    with pytest.raises(AnalysisUnavailableException):
        client.analyze("https://example/photos/dog.jpg")


def test_analyze_transport_error_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)
    with pytest.raises(AnalysisUnavailableException):
        client.analyze("https://example/photos/dog.jpg")


def test_analyze_invalid_json_is_unavailable():
    client = make_client(lambda request: httpx.Response(200, content=b"<html>"))
    with pytest.raises(AnalysisUnavailableException):
        client.analyze("https://example/photos/dog.jpg")


def test_analyze_without_endpoint_is_unavailable(monkeypatch):
    from gallery.settings import settings
    monkeypatch.setattr(settings, "vision_endpoint", None)

    client = VisionClient(endpoint=None, transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    with pytest.raises(AnalysisUnavailableException):
        client.analyze("https://example/photos/dog.jpg")


@pytest.mark.parametrize("payload", [
    {"description": {"captions": ["a dog"]}},
    {"description": {"captions": [{"text": None}]}},
    {"description": {"captions": [{"confidence": 0.9}]}},
    {"description": {"captions": [{"text": "a dog"}], "tags": "dog,field"}},
    {"description": ["a dog"]},
    ["a dog"],
])
def test_analyze_malformed_payload_is_unavailable(payload):
    client = make_client(lambda request: httpx.Response(200, json=payload))
    with pytest.raises(AnalysisUnavailableException):
        client.analyze("https://example/photos/dog.jpg")
