# tests/typegen/codegen/test_commands.py
from typing import Annotated, Optional

import pytest
from pydantic import BaseModel

from typegen.codegen.commands import HIDDEN, CommandArg, CommandMeta, CommandSet, Hidden, renderCommand
from typegen.codegen.typescript import EmitterOptions, TypeScriptEmitter
from typegen.core.writer import DocumentWriter
from typegen.schema.model import SchemaObject, parseSchema
from typegen.schema.store import SchemaStore


class HelloRequest(BaseModel):
    name: str


class HelloReply(BaseModel):
    """Greeting sent back to the caller."""
    message: str
    request: HelloRequest


class Window:
    """Host-side handle, never serialized."""


async def _noFetch(locator: str):
    raise AssertionError(f"unexpected fetch of {locator}")


def _commands() -> CommandSet:
    commands = CommandSet()

    @commands.command()
    async def hello(request: HelloRequest) -> HelloReply:
        """Say hello."""
        return HelloReply(message=f"Hello {request.name}", request=request)

    def add(a: int, b: int) -> int:
        return a + b

    commands.add(add, name="add numbers", docs="Adds two numbers.\n  Keeps indentation.")

    @commands.command("show_window")
    def showWindow(window: Hidden[Window], title: str) -> None:
        pass

    @commands.command()
    def ping():
        pass

    return commands


def _emitterFor(definitions) -> TypeScriptEmitter:
    store = SchemaStore(fetcher=_noFetch)
    store.ingestDefinitions(definitions)
    return TypeScriptEmitter(store, EmitterOptions())


def _render(name: str, meta: CommandMeta, emitter: TypeScriptEmitter) -> str:
    out = DocumentWriter()
    renderCommand(name, meta, emitter, out)
    return out.finish()


def test_registry_keeps_registration_order():
    commands = _commands()
    assert commands.names() == ["hello", "add numbers", "show_window", "ping"]
    assert len(commands) == 4


def test_duplicate_command_name_is_rejected():
    commands = CommandSet()
    commands.add(lambda: None, name="dup")
    with pytest.raises(ValueError, match="dup"):
        commands.add(lambda: None, name="dup")


def test_hidden_marker():
    assert Hidden[Window] == Annotated[Window, HIDDEN]
    assert repr(HIDDEN) == "HIDDEN"


def test_reflect_collects_model_definitions():
    definitions, metas = _commands().reflect()

    assert {"HelloRequest", "HelloReply"} <= set(definitions)
    reply = definitions["HelloReply"]
    assert isinstance(reply, SchemaObject)
    assert reply.description == "Greeting sent back to the caller."
    assert reply.properties["request"].ref == "#/$defs/HelloRequest"

    byName = dict(metas)
    assert [name for name, _ in metas] == ["hello", "add numbers", "show_window", "ping"]
    hello = byName["hello"]
    assert hello.docs == "Say hello."
    assert hello.args[0].name == "request"
    assert hello.args[0].schema.ref == "root://HelloRequest"
    assert hello.outputSchema.ref == "root://HelloReply"

    showWindow = byName["show_window"]
    assert [(arg.name, arg.hidden) for arg in showWindow.args] == [("window", True), ("title", False)]
    assert byName["ping"].outputSchema is True


def test_reflect_without_commands():
    assert CommandSet().reflect() == ({}, [])


def test_render_model_command():
    definitions, metas = _commands().reflect()
    emitter = _emitterFor(definitions)

    assert _render("hello", dict(metas)["hello"], emitter) == (
        "/**\n * Say hello.\n */\n"
        "export function hello(request: HelloRequest,): Promise<HelloReply> "
        "{return invoke('hello', {_1: request,});}\n"
    )


def test_render_primitive_command_keeps_doc_lines_untrimmed():
    definitions, metas = _commands().reflect()
    emitter = _emitterFor(definitions)

    assert _render("add numbers", dict(metas)["add numbers"], emitter) == (
        "/**\n * Adds two numbers.\n *   Keeps indentation.\n */\n"
        "export function addNumbers(a: number,b: number,): Promise<number> "
        "{return invoke('add numbers', {_1: a,_2: b,});}\n"
    )


def test_hidden_arguments_keep_their_position_but_are_not_sent():
    definitions, metas = _commands().reflect()
    emitter = _emitterFor(definitions)

    assert _render("show_window", dict(metas)["show_window"], emitter) == (
        "export function showWindow(title: string,): Promise<null> "
        "{return invoke('show_window', {_2: title,});}\n"
    )


def test_missing_return_annotation_is_unknown():
    definitions, metas = _commands().reflect()
    emitter = _emitterFor(definitions)

    assert _render("ping", dict(metas)["ping"], emitter) == (
        "export function ping(): Promise<unknown> {return invoke('ping', {});}\n"
    )


def test_render_handwritten_meta():
    emitter = _emitterFor({"Item": {"type": "object", "properties": {"id": {"type": "integer"}}}})
    meta = CommandMeta(
        args=[
            CommandArg("items", parseSchema({"type": "array", "items": {"$ref": "root://Item"}})),
            CommandArg("flag", True),
        ],
        outputSchema=False,
    )

    assert _render("list_items", meta, emitter) == (
        "export function listItems(items: Array<Item>,flag: unknown,): Promise<never> "
        "{return invoke('list_items', {_1: items,_2: flag,});}\n"
    )


def test_absent_output_schema_renders_empty_promise():
    emitter = _emitterFor({})
    assert _render("fire", CommandMeta(), emitter) == (
        "export function fire(): Promise<> {return invoke('fire', {});}\n"
    )


def test_optional_and_list_arguments():
    commands = CommandSet()

    @commands.command()
    def search(query: Optional[str], limit: int = 10) -> list[HelloRequest]:
        return []

    definitions, metas = commands.reflect()
    emitter = _emitterFor(definitions)

    assert _render("search", dict(metas)["search"], emitter) == (
        "export function search(query: (string | null),limit: number,): Promise<Array<HelloRequest>> "
        "{return invoke('search', {_1: query,_2: limit,});}\n"
    )
