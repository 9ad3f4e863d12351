"""
Configuration script parsing and execution.

Scripts use Python syntax but are never executed by Python. They are parsed
with ``ast`` and each statement is interpreted against an explicit current
namespace. Only these statements are understood::

    set("env", "production")
    unset("legacy_flag")
    load("database.conf", if_exists=True)
    group("cache")
    with group("db"):
        set("host", "localhost")
        set("port", 5432)

Arguments must be literals. Statements are applied one at a time; when a
statement fails, earlier statements stay applied.
"""

import ast
import inspect
import logging
import threading
from typing import Any, Dict, List, Optional

from errors import (
    ErrorCode,
    GroupConfigError,
    ScriptExecutionError,
    SourceNotFoundError,
    error_context,
)
from groupconfig.sources import FileSourceResolver, SourceRef, SourceResolver

logger = logging.getLogger(__name__)


def _set(key, value): pass
def _unset(key): pass
def _group(name): pass
def _load(source, if_exists=False): pass


OPERATIONS: Dict[str, inspect.Signature] = {
    "set": inspect.signature(_set),
    "unset": inspect.signature(_unset),
    "group": inspect.signature(_group),
    "load": inspect.signature(_load),
}


def parse_script(text: str, source_name: str = "<string>") -> List[ast.stmt]:
    """
    Parse script text into statements without running any of them.

    Raises:
        ScriptExecutionError: If the text is not valid syntax
    """
    try:
        module = ast.parse(text, filename=source_name)
    except SyntaxError as e:
        raise ScriptExecutionError(
            f"Syntax error in {source_name} at line {e.lineno}: {e.msg}",
            ErrorCode.SCRIPT_SYNTAX_ERROR,
            {"source": source_name, "script": source_name, "line": e.lineno}
        ) from e
    except ValueError as e:
        # Null bytes raise ValueError instead of SyntaxError before Python 3.12
        raise ScriptExecutionError(
            f"Syntax error in {source_name}: {e}",
            ErrorCode.SCRIPT_SYNTAX_ERROR,
            {"source": source_name, "script": source_name, "line": None}
        ) from e
    return module.body


class ScriptInterpreter:
    """
    Applies parsed statements to a namespace.

    The current namespace is always passed explicitly; ``with group(...)``
    blocks recurse with the sub-namespace as the new current namespace.
    """

    def __init__(self, loader: "ScriptLoader", source_name: str):
        self.loader = loader
        self.source_name = source_name

    def execute(self, statements: List[ast.stmt], namespace) -> None:
        for statement in statements:
            self.execute_statement(statement, namespace)

    def execute_statement(self, statement: ast.stmt, namespace) -> None:
        location = {"source": self.source_name, "line": statement.lineno}

        if isinstance(statement, ast.Pass):
            return
        if isinstance(statement, ast.Expr) and isinstance(statement.value, ast.Constant) \
                and isinstance(statement.value.value, str):
            return

        try:
            with error_context(
                "script",
                f"line {statement.lineno} of {self.source_name}",
                ScriptExecutionError,
                ErrorCode.SCRIPT_EXECUTION_ERROR,
                location,
                logger
            ):
                if isinstance(statement, ast.Expr) and isinstance(statement.value, ast.Call):
                    self._call(statement.value, namespace)
                elif isinstance(statement, ast.With):
                    self._with_group(statement, namespace)
                else:
                    raise ScriptExecutionError(
                        f"Unsupported statement '{type(statement).__name__}' in "
                        f"{self.source_name} at line {statement.lineno}",
                        ErrorCode.SCRIPT_UNSUPPORTED_STATEMENT,
                        location
                    )
        except GroupConfigError as e:
            e.details.setdefault("script", self.source_name)
            e.details.setdefault("line", statement.lineno)
            raise

    def _call(self, call: ast.Call, namespace) -> Any:
        operation, arguments = self._bind(call)
        if operation == "set":
            return namespace.set(arguments["key"], arguments["value"])
        if operation == "unset":
            return namespace.unset(arguments["key"])
        if operation == "group":
            return namespace.group(arguments["name"])
        return self.loader.load(namespace, arguments["source"], if_exists=arguments["if_exists"])

    def _with_group(self, statement: ast.With, namespace) -> None:
        items = statement.items
        if len(items) != 1 or items[0].optional_vars is not None \
                or not isinstance(items[0].context_expr, ast.Call):
            raise ScriptExecutionError(
                f"Only 'with group(name):' blocks are supported ({self.source_name} "
                f"line {statement.lineno})",
                ErrorCode.SCRIPT_UNSUPPORTED_STATEMENT,
                {"source": self.source_name, "line": statement.lineno}
            )

        operation, arguments = self._bind(items[0].context_expr)
        if operation != "group":
            raise ScriptExecutionError(
                f"'with' blocks only accept group(), got {operation}() "
                f"({self.source_name} line {statement.lineno})",
                ErrorCode.SCRIPT_UNSUPPORTED_STATEMENT,
                {"source": self.source_name, "line": statement.lineno}
            )

        sub_namespace = namespace.group(arguments["name"])
        self.execute(statement.body, sub_namespace)

    def _bind(self, call: ast.Call):
        """Resolve the operation name and bind its literal arguments."""
        if not isinstance(call.func, ast.Name) or call.func.id not in OPERATIONS:
            raise ScriptExecutionError(
                f"Unknown operation '{ast.unparse(call.func)}' in {self.source_name} "
                f"at line {call.lineno}",
                ErrorCode.SCRIPT_UNSUPPORTED_STATEMENT,
                {"source": self.source_name, "line": call.lineno}
            )
        operation = call.func.id

        args = []
        for node in call.args:
            if isinstance(node, ast.Starred):
                raise ScriptExecutionError(
                    f"Star arguments are not supported ({self.source_name} line {call.lineno})",
                    ErrorCode.SCRIPT_UNSUPPORTED_STATEMENT,
                    {"source": self.source_name, "line": call.lineno}
                )
            args.append(self._literal(node))

        kwargs = {}
        for keyword in call.keywords:
            if keyword.arg is None:
                raise ScriptExecutionError(
                    f"'**' arguments are not supported ({self.source_name} line {call.lineno})",
                    ErrorCode.SCRIPT_UNSUPPORTED_STATEMENT,
                    {"source": self.source_name, "line": call.lineno}
                )
            kwargs[keyword.arg] = self._literal(keyword.value)

        try:
            bound = OPERATIONS[operation].bind(*args, **kwargs)
        except TypeError as e:
            raise ScriptExecutionError(
                f"Invalid arguments for {operation}() in {self.source_name} "
                f"at line {call.lineno}: {e}",
                details={"source": self.source_name, "line": call.lineno}
            ) from e
        bound.apply_defaults()
        return operation, bound.arguments

    def _literal(self, node: ast.expr) -> Any:
        try:
            return ast.literal_eval(node)
        except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError) as e:
            raise ScriptExecutionError(
                f"Arguments must be literals, got '{ast.unparse(node)}' in "
                f"{self.source_name} at line {node.lineno}",
                details={"source": self.source_name, "line": node.lineno}
            ) from e


class ScriptLoader:
    """
    Loads configuration sources into namespaces.

    Keeps track of the sources currently being applied so that nested
    relative loads resolve against their parent and so that a source
    loading itself (directly or indirectly) fails instead of recursing
    forever.
    """

    def __init__(self, resolver: Optional[SourceResolver] = None):
        self.resolver = resolver or FileSourceResolver()
        self._local = threading.local()

    @property
    def _stack(self) -> List[str]:
        stack = getattr(self._local, "stack", None)
        if stack is None:
            stack = self._local.stack = []
        return stack

    def load(self, namespace, source: SourceRef, if_exists: bool = False) -> bool:
        """
        Apply ``source`` to ``namespace``.

        Returns:
            True if applied, False if skipped because of ``if_exists``
        """
        stack = self._stack
        location = self.resolver.locate(source, stack[-1] if stack else None)

        if not self.resolver.exists(location):
            if if_exists:
                logger.info(f"Skipping optional source {location} for '{namespace.path}'")
                return False
            raise SourceNotFoundError(
                f"Configuration source not found: {location}",
                details={"source": location, "namespace": namespace.path}
            )

        if location in stack:
            raise ScriptExecutionError(
                f"Recursive load of {location} (chain: {' -> '.join(stack + [location])})",
                details={"source": location, "chain": stack + [location]}
            )

        statements = parse_script(self.resolver.read(location), location)

        logger.debug(f"Loading {location} into '{namespace.path}'")
        stack.append(location)
        try:
            ScriptInterpreter(self, location).execute(statements, namespace)
        finally:
            stack.pop()
        return True

    def load_text(self, namespace, text: str, source_name: str = "<string>") -> None:
        """Apply script ``text`` directly, without going through the resolver."""
        statements = parse_script(text, source_name)
        ScriptInterpreter(self, source_name).execute(statements, namespace)
