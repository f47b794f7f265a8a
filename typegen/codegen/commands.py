# typegen/codegen/commands.py
from __future__ import annotations
import inspect
import typing
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Annotated, Any

import logging
from pydantic import TypeAdapter

from typegen.core.logging import logContext
from typegen.core.naming import toLowerCamel
from typegen.core.writer import DocumentWriter
from typegen.schema.model import Schema, SchemaObject, parseSchema
from typegen.schema.store import rewriteLocalReferences
from .typescript import TypeScriptEmitter, writeDocComment

logger = logging.getLogger(__name__)

__all__ = [
    "HIDDEN",
    "Hidden",
    "CommandArg",
    "CommandMeta",
    "CommandSet",
    "renderCommand",
]



class _HiddenMarker:
    """Annotated[...] marker for arguments the host injects (window handles, app state...)."""
    def __repr__(self) -> str:
        return "HIDDEN"

HIDDEN = _HiddenMarker()



class Hidden:
    """`Hidden[T]` is shorthand for `Annotated[T, HIDDEN]`."""
    def __class_getitem__(cls, item: Any) -> Any:
        return Annotated[item, HIDDEN]



@dataclass(slots=True)
class CommandArg:
    name: str
    schema: Schema
    hidden: bool = False



@dataclass(slots=True)
class CommandMeta:
    docs: str = ""
    args: list[CommandArg] = field(default_factory=list)
    outputSchema: Schema | None = None



def renderCommand(name: str, meta: CommandMeta, emitter: TypeScriptEmitter, out: DocumentWriter) -> None:
    """
    Client-side call signature for one command, e.g.

        export function addNumbers(a: number,b: number,): Promise<number> {return invoke('add numbers', {_1: a,_2: b,});}

    Arguments travel positionally as `_1`, `_2`, ... Hidden arguments keep their position number
    but appear neither in the signature nor in the payload.
    """
    with logContext(command=name):
        writeDocComment(meta.docs, out, trim=False)
        out.pushStr("export function ")
        out.pushStr(toLowerCamel(name))
        out.pushStr("(")

        payload = DocumentWriter()
        payload.pushStr("{")
        for idx, arg in enumerate(meta.args, start=1):
            if arg.hidden:
                continue
            out.pushStr(arg.name)
            out.pushStr(": ")
            emitter.renderNameOrType(arg.schema, out)
            out.pushStr(",")

            payload.pushStr(f"_{idx}: {arg.name},")
        payload.pushStr("}")

        out.pushStr("): Promise<")
        if meta.outputSchema is not None:
            emitter.renderNameOrType(meta.outputSchema, out)
        out.pushStr("> {")
        out.pushStr(f"return invoke('{name}', {payload.finish()});")
        out.pushStr("}\n")



def _isHidden(annotation: Any) -> bool:
    if typing.get_origin(annotation) is Annotated:
        return any(meta is HIDDEN for meta in typing.get_args(annotation)[1:])
    return False



@dataclass(slots=True)
class _Registered:
    name: str
    func: Callable[..., Any]
    docs: str



class CommandSet:
    """
    Commands whose argument and return types are exported to the client.

    Python type annotations are reflected through pydantic's JSON Schema generation; every
    model they mention ends up as a named definition, arguments and return values refer to
    those definitions by root://<Name>.

        commands = CommandSet()

        @commands.command()
        async def hello(request: HelloRequest) -> HelloReply: ...
    """
    def __init__(self) -> None:
        self._commands: dict[str, _Registered] = {}

    def command(self, name: str | None = None, *, docs: str | None = None):
        def deco(func):
            self.add(func, name=name, docs=docs)
            return func
        return deco

    def add(self, func: Callable[..., Any], *, name: str | None = None, docs: str | None = None) -> None:
        cmdName = name or func.__name__
        if cmdName in self._commands:
            raise ValueError(f"command handler for command `{cmdName}` already exists")
        self._commands[cmdName] = _Registered(
            name=cmdName,
            func=func,
            docs=docs if docs is not None else (inspect.getdoc(func) or ""),
        )

    def names(self) -> list[str]:
        return list(self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    def reflect(self) -> tuple[dict[str, Schema], list[tuple[str, CommandMeta]]]:
        """
        Returns (definitions, commands): the named schema definitions every command type
        depends on, and per-command metadata in registration order.
        """
        inputs: list[tuple[tuple[str, str, int], Any, TypeAdapter[Any]]] = []
        layouts: list[tuple[_Registered, list[tuple[str, bool]], bool]] = []

        for reg in self._commands.values():
            hints = typing.get_type_hints(reg.func, include_extras=True)
            params: list[tuple[str, bool]] = []
            position = 0
            for param in inspect.signature(reg.func).parameters.values():
                if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                    continue
                annotation = hints.get(param.name, Any)
                hidden = _isHidden(annotation)
                params.append((param.name, hidden))
                if not hidden:
                    inputs.append(((reg.name, "arg", position), "validation", TypeAdapter(annotation)))
                position += 1

            hasReturn = "return" in hints
            if hasReturn:
                inputs.append(((reg.name, "return", 0), "serialization", TypeAdapter(hints["return"])))
            layouts.append((reg, params, hasReturn))

        keyMap, top = TypeAdapter.json_schemas(inputs, ref_template="#/$defs/{model}") if inputs else ({}, {})
        definitions: dict[str, Schema] = {
            defName: parseSchema(defSchema) for defName, defSchema in (top.get("$defs") or {}).items()
        }

        commands: list[tuple[str, CommandMeta]] = []
        for reg, params, hasReturn in layouts:
            args: list[CommandArg] = []
            position = 0
            for paramName, hidden in params:
                if hidden:
                    args.append(CommandArg(name=paramName, schema=False, hidden=True))
                else:
                    schema = parseSchema(keyMap[((reg.name, "arg", position), "validation")])
                    args.append(CommandArg(name=paramName, schema=rewriteLocalReferences(schema)))
                position += 1

            outputSchema: Schema = True
            if hasReturn:
                outputSchema = rewriteLocalReferences(parseSchema(keyMap[((reg.name, "return", 0), "serialization")]))
            commands.append((reg.name, CommandMeta(docs=reg.docs, args=args, outputSchema=outputSchema)))

        logger.debug("Reflected %d command(s) into %d definition(s)", len(commands), len(definitions))
        return definitions, commands
