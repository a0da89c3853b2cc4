"""Compiled template sets.

A TemplateSet is the result of one compile: a Jinja2 Environment whose
loader serves the sources found during the directory walk, plus a read-only
index from template name to NamedTemplate. Sets are never modified after
they are built; a recompile builds a new one.
"""

from collections.abc import Callable, Iterable, Iterator, Mapping, MutableMapping
from dataclasses import asdict, dataclass, field, is_dataclass
from io import StringIO
from pathlib import PurePath
from types import CodeType, MappingProxyType
from typing import Any, Protocol

from jinja2 import BaseLoader, Environment, Template, TemplateNotFound, nodes
from jinja2.exceptions import TemplateSyntaxError
from pydantic import BaseModel
from structlog.typing import FilteringBoundLogger

from temple._delimiters import Delimiters
from temple._filesystem import FileSystem
from temple._functions import FunctionMap, merge_functions
from temple.exceptions import (
    TemplateLoadError,
    TemplateNameCollisionError,
    TemplateParseError,
)

DEFAULT_EXTENSIONS: tuple[str, ...] = (".html", ".tmpl")

# Separates a file name from one of its blocks in a qualified name
BLOCK_SEPARATOR = ":"


class Sink(Protocol):
    """Anything with a ``write(str)`` method."""

    def write(self, s: str, /) -> object: ...


def build_context(
    functions: FunctionMap,
    data: object,
) -> dict[str, Any]:
    """Compose the variables a template executes with.

    Context is merged in order (later values override earlier):
    1. Template functions
    2. Data: a mapping is spread, a pydantic model or dataclass is dumped,
       any other value is bound as ``data``.

    Args:
        functions: Effective function map for this execution.
        data: Caller-supplied data, or None.

    Returns:
        A new context dictionary.
    """
    result: dict[str, Any] = dict(functions)
    if data is None:
        return result
    if isinstance(data, BaseModel):
        values: Mapping[str, Any] = data.model_dump()
    elif is_dataclass(data) and not isinstance(data, type):
        values = asdict(data)
    elif isinstance(data, Mapping):
        values = data
    else:
        values = {"data": data}
    return {**result, **values}


@dataclass(slots=True, frozen=True)
class NamedTemplate:
    """A template registered in a compiled set.

    Attributes:
        name: The name the template is registered under.
        path: Source file the template was parsed from.
        template: The compiled Jinja2 template for that file.
        block: Block to execute, or None to execute the whole file.
        functions: Function map of the set this template belongs to.
    """

    name: str
    path: str
    template: Template
    block: str | None = None
    functions: FunctionMap = field(default_factory=dict)

    def generate(self, data: object = None, *functions: FunctionMap) -> Iterator[str]:
        """Yield rendered output chunks.

        Args:
            data: Template data, see ``build_context``.
            *functions: Extra function maps layered over the set's functions.
        """
        context = build_context(merge_functions(self.functions, *functions), data)
        if self.block is None:
            yield from self.template.generate(context)
            return

        render_block = self.template.blocks[self.block]
        ctx = self.template.new_context(context)
        try:
            # Top-level macros, imports and sets land in ctx; the output is dropped
            for _ in self.template.root_render_func(ctx):
                pass
            yield from render_block(ctx)
        except Exception:
            # Re-raises with the template frames rewritten, like Template.render
            self.template.environment.handle_exception()

    def stream(self, sink: Sink, data: object = None, *functions: FunctionMap) -> None:
        """Write rendered output to sink as it is produced.

        Output written before an error stays written.
        """
        for chunk in self.generate(data, *functions):
            sink.write(chunk)

    def render(self, data: object = None, *functions: FunctionMap) -> str:
        """Render to a string."""
        buffer = StringIO()
        self.stream(buffer, data, *functions)
        return buffer.getvalue()


class _SourceLoader(BaseLoader):
    """Serves sources collected during the directory walk.

    Files compiled during the walk are loaded from their compiled code, so
    each source is parsed once.
    """

    def __init__(self) -> None:
        self.sources: dict[str, tuple[str, str]] = {}
        self.compiled: dict[str, CodeType] = {}

    def load(
        self,
        environment: Environment,
        name: str,
        globals: MutableMapping[str, Any] | None = None,  # noqa: A002
    ) -> Template:
        code = self.compiled.get(name)
        if code is None:
            return super().load(environment, name, globals)
        return environment.template_class.from_code(
            environment, code, globals if globals is not None else {}, lambda: True
        )

    def get_source(
        self, environment: Environment, template: str
    ) -> tuple[str, str | None, Callable[[], bool] | None]:
        try:
            source, path = self.sources[template]
        except KeyError:
            raise TemplateNotFound(template) from None
        return source, path, lambda: True

    def list_templates(self) -> list[str]:
        return sorted(self.sources)


@dataclass(slots=True, frozen=True)
class TemplateSet:
    """One compiled, immutable collection of named templates.

    Attributes:
        environment: Jinja2 environment the templates were compiled in.
        templates: Name to template index.
        functions: Function map the set was compiled with.
        delimiters: Delimiters the set was compiled with.
        directory: Root directory that was walked.
    """

    environment: Environment
    templates: Mapping[str, NamedTemplate]
    functions: FunctionMap
    delimiters: Delimiters
    directory: str

    def __contains__(self, name: object) -> bool:
        return name in self.templates

    def __len__(self) -> int:
        return len(self.templates)

    def get(self, name: str) -> NamedTemplate | None:
        return self.templates.get(name)

    @property
    def names(self) -> list[str]:
        """Sorted names of every registered template."""
        return sorted(self.templates)


def create_environment(
    functions: FunctionMap,
    delimiters: Delimiters,
    loader: BaseLoader | None = None,
) -> Environment:
    """Create the Jinja2 Environment a set is compiled in.

    Autoescaping is always on; values wrapped in ``Markup`` (for example the
    output of ``markd`` and ``noescape``) are written as-is. Every function is
    available both as a callable and as a filter.

    Args:
        functions: Function map to register.
        delimiters: Tag delimiters.
        loader: Loader serving the set's sources.

    Returns:
        Configured Jinja2 Environment.
    """
    env = Environment(
        loader=loader,
        autoescape=True,
        keep_trailing_newline=True,
        cache_size=-1,
        **delimiters.environment_options,
    )
    env.globals.update(functions)
    env.filters.update(functions)
    return env


def _exported_blocks(ast: nodes.Template, template: Template) -> Iterable[str]:
    # Blocks of a child template override its parent's and are not exported
    if ast.find(nodes.Extends) is not None:
        return ()
    return template.blocks.keys()


def build_template_set(
    fs: FileSystem,
    directory: str,
    *,
    functions: FunctionMap,
    delimiters: Delimiters,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    logger: FilteringBoundLogger,
) -> TemplateSet:
    """Walk a directory and compile every template file into a new set.

    Files whose final suffix is one of ``extensions`` are parsed under their
    base file name; everything else is skipped. The walk stops at the first
    error.

    Every block of a template that does not extend another is also
    registered as ``<file>:<block>``, and under the bare block name when no
    file and no other template claims that name.

    Raises:
        TemplateLoadError: If the tree cannot be walked or a file read.
        TemplateParseError: If a file is not a valid template.
        TemplateNameCollisionError: If two files share a base name.
    """
    suffixes = frozenset(extensions)
    loader = _SourceLoader()
    env = create_environment(functions, delimiters, loader)
    set_functions: FunctionMap = MappingProxyType(dict(functions))

    templates: dict[str, NamedTemplate] = {}
    block_owners: dict[str, list[NamedTemplate]] = {}

    entries = fs.walk(directory)
    while True:
        try:
            path, is_dir = next(entries)
        except StopIteration:
            break
        except OSError as e:
            failed = e.filename if e.filename is not None else directory
            logger.error("walk failed", path=str(failed), error=str(e))
            msg = f"{failed}: {e.strerror or e}"
            raise TemplateLoadError(msg, path=str(failed), cause=e) from e

        if is_dir or PurePath(path).suffix not in suffixes:
            continue

        named, ast = _parse_file(
            fs, env, loader, path, set_functions, templates, logger
        )
        templates[named.name] = named
        logger.info("parsed", path=str(path))

        for block in _exported_blocks(ast, named.template):
            block_owners.setdefault(block, []).append(named)

    for block, owners in sorted(block_owners.items()):
        for owner in owners:
            qualified = f"{owner.name}{BLOCK_SEPARATOR}{block}"
            templates.setdefault(
                qualified,
                NamedTemplate(
                    name=qualified,
                    path=owner.path,
                    template=owner.template,
                    block=block,
                    functions=set_functions,
                ),
            )
        if len(owners) > 1 or block in templates:
            logger.warning(
                "ambiguous block name",
                block=block,
                paths=[owner.path for owner in owners],
            )
            continue
        owner = owners[0]
        templates[block] = NamedTemplate(
            name=block,
            path=owner.path,
            template=owner.template,
            block=block,
            functions=set_functions,
        )

    return TemplateSet(
        environment=env,
        templates=MappingProxyType(templates),
        functions=set_functions,
        delimiters=delimiters,
        directory=directory,
    )


def _parse_file(  # noqa: PLR0913
    fs: FileSystem,
    env: Environment,
    loader: _SourceLoader,
    path: PurePath,
    functions: FunctionMap,
    templates: Mapping[str, NamedTemplate],
    logger: FilteringBoundLogger,
) -> tuple[NamedTemplate, nodes.Template]:
    """Read one file and compile it under its base name.

    Returns:
        The registered template and its parsed syntax tree.
    """
    name = PurePath(path).name
    existing = templates.get(name)
    if existing is not None:
        msg = f"template {name!r} is defined by both {existing.path} and {path}"
        logger.error(
            "name collision", name=name, path=str(path), existing=existing.path
        )
        raise TemplateNameCollisionError(
            msg, name=name, path=path, existing_path=existing.path
        )

    try:
        source = fs.read_bytes(path).decode("utf-8")
    except OSError as e:
        logger.error("read failed", path=str(path), error=str(e))
        msg = f"{path}: {e.strerror or e}"
        raise TemplateLoadError(msg, path=path, cause=e) from e
    except UnicodeDecodeError as e:
        logger.error("read failed", path=str(path), error=str(e))
        msg = f"{path}: not valid UTF-8: {e}"
        raise TemplateLoadError(msg, path=path, cause=e) from e

    try:
        ast = env.parse(source, name, str(path))
        code = env.compile(ast, name, str(path))
    except TemplateSyntaxError as e:
        logger.error("parse failed", path=str(path), line=e.lineno, error=e.message)
        msg = f"{path}:{e.lineno}: {e.message}"
        raise TemplateParseError(msg, path=path, line=e.lineno, cause=e) from e

    loader.sources[name] = (source, str(path))
    loader.compiled[name] = code
    template = env.get_template(name)

    named = NamedTemplate(
        name=name,
        path=str(path),
        template=template,
        functions=functions,
    )
    return named, ast
