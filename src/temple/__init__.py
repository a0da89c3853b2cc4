r"""temple: compile and render directories of Jinja2 templates.

A TemplateStore walks a directory, compiles every ``.html`` and ``.tmpl``
file into one named template set, and renders templates from it by name.
Files are registered under their base file name, and the blocks they define
are addressable on their own.

Basic usage:
    import sys

    from temple import TemplateStore

    # templates/index.html: <% block index %>Hello <%= name %>!<% endblock %>
    store = TemplateStore("templates")
    store.compile()
    store.render(sys.stdout, "index", {"name": "World"})

Delimiters default to ``<%`` and ``%>`` and can be chosen per compile:
    store.compile("{{", "}}")  # {{ if x }}, {{= x }}, {{# note }}

Development mode recompiles on every render:
    from temple import TemplateStore, dev_mode

    store = TemplateStore("templates", dev_mode)

Template functions:
    from temple import TemplateStore, with_extra_functions

    store = TemplateStore("templates", with_extra_functions({"shout": str.upper}))
    store.render(sys.stdout, "index", data, {"shout": str.title})  # per render
"""

from ._config import (
    StoreConfig,
    StoreOption,
    TempleSettings,
    dev_mode,
    load_settings,
    with_delimiters,
    with_extensions,
    with_extra_functions,
    with_filesystem,
    with_functions,
    with_log_level,
)
from ._delimiters import (
    DEFAULT_LEFT,
    DEFAULT_RIGHT,
    Delimiters,
    get_default_delimiters,
    reset_default_delimiters,
    set_default_delimiters,
)
from ._filesystem import (
    FileSystem,
    OSFileSystem,
    get_default_filesystem,
    set_default_filesystem,
)
from ._functions import (
    DEFAULT_FUNCTIONS,
    FunctionMap,
    markd,
    merge_functions,
    noescape,
)
from ._logging import LogLevel, get_log_level, set_log_level
from ._memory import MemoryFileSystem
from ._set import DEFAULT_EXTENSIONS, NamedTemplate, Sink, TemplateSet
from ._store import TemplateStore
from .exceptions import (
    DelimiterError,
    SettingsError,
    TempleError,
    TemplateLoadError,
    TemplateNameCollisionError,
    TemplateNotFoundError,
    TemplateParseError,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_EXTENSIONS",
    "DEFAULT_FUNCTIONS",
    "DEFAULT_LEFT",
    "DEFAULT_RIGHT",
    "DelimiterError",
    "Delimiters",
    "FileSystem",
    "FunctionMap",
    "LogLevel",
    "MemoryFileSystem",
    "NamedTemplate",
    "OSFileSystem",
    "SettingsError",
    "Sink",
    "StoreConfig",
    "StoreOption",
    "TempleError",
    "TempleSettings",
    "TemplateLoadError",
    "TemplateNameCollisionError",
    "TemplateNotFoundError",
    "TemplateParseError",
    "TemplateSet",
    "TemplateStore",
    "dev_mode",
    "get_default_delimiters",
    "get_default_filesystem",
    "get_log_level",
    "load_settings",
    "markd",
    "merge_functions",
    "noescape",
    "reset_default_delimiters",
    "set_default_delimiters",
    "set_default_filesystem",
    "set_log_level",
    "with_delimiters",
    "with_extensions",
    "with_extra_functions",
    "with_filesystem",
    "with_functions",
    "with_log_level",
]
