# tests/typegen/schema/test_fetch.py
import httpx
import pytest

from typegen.core.errors import FetchError
from typegen.http import client as http_client
from typegen.schema import fetch
from typegen.schema.fetch import fetchSchema, jsonPointer, loadDocument
from typegen.schema.model import SchemaObject
from typegen.schema.store import SchemaStore


DOCUMENT = {
    "definitions": {
        "a/b": {"type": "string"},
        "tilde~": {"type": "number"},
        "list": [{"type": "null"}, {"type": "boolean"}],
    },
}


def _serve(monkeypatch: pytest.MonkeyPatch, handler) -> list[str]:
    """Route the HTTP client through a MockTransport; returns the requested URLs."""
    seen: list[str] = []
    original_async_client = http_client.httpx.AsyncClient

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return handler(request)

    transport = httpx.MockTransport(recording)

    def patched(*args, **kwargs):
        kwargs["transport"] = transport
        return original_async_client(*args, **kwargs)

    monkeypatch.setattr(http_client.httpx, "AsyncClient", patched)
    return seen


@pytest.mark.parametrize(
    "pointer, expected",
    [
        ("", DOCUMENT),
        ("/definitions/a~1b", {"type": "string"}),
        ("/definitions/tilde~0", {"type": "number"}),
        ("/definitions/list/1", {"type": "boolean"}),
    ],
)
def test_json_pointer_resolves(pointer, expected):
    assert jsonPointer(DOCUMENT, pointer) == expected


@pytest.mark.parametrize(
    "pointer",
    [
        "definitions",
        "/missing",
        "/definitions/list/7",
        "/definitions/list/x",
        "/definitions/a~1b/type/deeper",
    ],
)
def test_json_pointer_failures_are_lookup_errors(pointer):
    with pytest.raises(LookupError):
        jsonPointer(DOCUMENT, pointer)


@pytest.mark.asyncio
async def test_file_locator_is_read_as_json5(tmp_path):
    path = tmp_path / "user.json"
    path.write_text("{title: 'User', type: 'object', // comment\n properties: {id: {type: 'integer'}},}", encoding="utf-8")

    schema = await fetchSchema(path.as_uri())

    assert isinstance(schema, SchemaObject)
    assert schema.title == "User"
    assert schema.properties["id"].type == "integer"


@pytest.mark.asyncio
async def test_file_locator_fragment_is_followed(tmp_path):
    path = tmp_path / "defs.json"
    path.write_text('{"$defs": {"Tag": {"type": "string", "title": "Tag"}}}', encoding="utf-8")

    schema = await fetchSchema(path.as_uri() + "#/$defs/Tag")

    assert schema.type == "string"
    assert schema.title == "Tag"


@pytest.mark.asyncio
async def test_http_locator_goes_through_the_client(monkeypatch):
    seen = _serve(monkeypatch, lambda request: httpx.Response(200, json={"type": "array", "items": {"type": "string"}}))

    schema = await fetchSchema("https://example.com/schemas/tags.json")

    assert seen == ["https://example.com/schemas/tags.json"]
    assert schema.type == "array"
    assert schema.items.type == "string"


@pytest.mark.asyncio
async def test_http_body_without_json_content_type_is_still_parsed(monkeypatch):
    _serve(monkeypatch, lambda request: httpx.Response(200, text='{"type": "boolean"}', headers={"Content-Type": "text/plain"}))

    schema = await fetchSchema("http://example.com/flag")

    assert schema.type == "boolean"


@pytest.mark.asyncio
async def test_http_client_error_status_raises(monkeypatch):
    _serve(monkeypatch, lambda request: httpx.Response(404, text="nope"))

    with pytest.raises(http_client.HTTPError) as exc_info:
        await loadDocument("https://example.com/missing.json")
    assert exc_info.value.status == 404


@pytest.mark.asyncio
async def test_unsupported_scheme_raises():
    with pytest.raises(ValueError):
        await loadDocument("ftp://example.com/schema.json")


@pytest.mark.asyncio
async def test_default_fetcher_failures_surface_as_fetch_errors(monkeypatch):
    _serve(monkeypatch, lambda request: httpx.Response(404, text="nope"))
    store = SchemaStore()

    with pytest.raises(FetchError) as exc_info:
        await store.ingestExternal("https://example.com/root.json", {"$ref": "missing.json"})

    assert exc_info.value.reference == "https://example.com/missing.json"
    assert isinstance(exc_info.value.__cause__, http_client.HTTPError)


def test_store_defaults_to_the_module_fetcher():
    store = SchemaStore()
    assert store._fetcher is fetch.fetchSchema
