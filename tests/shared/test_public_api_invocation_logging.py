"""Checks for public API invocation instrumentation.

The static checks enforce that every public method declared on a service or
substrate contract is decorated with shared public API instrumentation. The
behavior checks cover what that instrumentation logs.
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from packages.ark_shared.errors import ErrorDetail, dependency_error
from packages.ark_shared.logging import fields, public_api_instrumented
from packages.ark_shared.logging.config import ContextFilter

_REPO_ROOT = Path(__file__).resolve().parents[2]
_LOGGER = logging.getLogger("tests.public_api")


def test_log_authority_decorates_every_contract_method() -> None:
    """Require instrumentation on all methods declared by the service contract."""
    contract_methods = _public_method_names(
        file_path=_REPO_ROOT / "services/state/log_authority/service.py",
        class_name="LogAuthorityService",
    )
    decorated_methods = _decorated_public_api_methods(
        file_path=_REPO_ROOT / "services/state/log_authority/implementation.py",
        class_name="DefaultLogAuthorityService",
    )

    missing = sorted(contract_methods - decorated_methods)
    assert not missing, f"Missing @public_api_instrumented on service: {missing}"


def test_qdrant_substrate_public_methods_have_invocation_instrumentation() -> None:
    """Require invocation instrumentation on Qdrant write/read contract methods."""
    contract_methods = _public_method_names(
        file_path=_REPO_ROOT / "resources/substrates/qdrant/substrate.py",
        class_name="QdrantSubstrate",
    ) - {"health"}
    decorated_methods = _decorated_public_api_methods(
        file_path=_REPO_ROOT / "resources/substrates/qdrant/qdrant_substrate.py",
        class_name="QdrantClientSubstrate",
    )

    missing = sorted(contract_methods - decorated_methods)
    assert not missing, f"Missing @public_api_instrumented on Qdrant methods: {missing}"


@dataclass(frozen=True)
class _Result:
    errors: list[ErrorDetail] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return len(self.errors) == 0


class _Component:
    @public_api_instrumented(
        logger=_LOGGER, component_id="service_test", id_fields=("log_id",), concerns=()
    )
    def lookup(self, *, log_id: str, fail: bool = False) -> _Result:
        if fail:
            return _Result(
                errors=[dependency_error("kv down", code="DEPENDENCY_UNAVAILABLE")]
            )
        return _Result()

    @public_api_instrumented(logger=_LOGGER, component_id="service_test", concerns=())
    def explode(self) -> None:
        raise ConnectionError("boom")


def test_completion_logs_success_with_references(caplog: Any) -> None:
    """Successful calls should log one info completion carrying id fields."""
    _capture(caplog)

    _Component().lookup(log_id="01JGZ7J0000000000000000001")

    completion = [r for r in caplog.records if r.getMessage() == "Public API completion"]
    assert len(completion) == 1
    record = completion[0]
    assert record.levelno == logging.INFO
    assert getattr(record, fields.API_NAME) == "lookup"
    assert getattr(record, "log_id") == "01JGZ7J0000000000000000001"
    assert getattr(record, fields.SUCCESS) == "True"


def test_result_errors_mark_completion_failed(caplog: Any) -> None:
    """Results carrying errors should log a warning completion."""
    _capture(caplog)

    _Component().lookup(log_id="01JGZ7J0000000000000000001", fail=True)

    record = [r for r in caplog.records if r.getMessage() == "Public API completion"][0]
    assert record.levelno == logging.WARNING
    assert "DEPENDENCY_UNAVAILABLE: kv down" in getattr(record, fields.ERRORS)


def test_exceptions_are_logged_and_reraised(caplog: Any) -> None:
    """Instrumentation must never swallow the wrapped method's exception."""
    _capture(caplog)

    with pytest.raises(ConnectionError):
        _Component().explode()

    record = [r for r in caplog.records if r.getMessage() == "Public API completion"][0]
    assert "ConnectionError: boom" in getattr(record, fields.ERRORS)


def test_failing_concern_does_not_change_outcome(caplog: Any) -> None:
    """A concern that raises should be logged and skipped."""

    class _Broken:
        def on_invocation(self, context: object) -> None:
            raise RuntimeError("broken concern")

        def on_completion(self, context: object) -> None:
            return None

    @public_api_instrumented(
        logger=_LOGGER, component_id="service_test", concerns=(_Broken(),)
    )
    def _call() -> int:
        return 7

    _capture(caplog)

    assert _call() == 7
    assert any(
        r.getMessage() == "Public API instrumentation concern failed"
        for r in caplog.records
    )


def _capture(caplog: Any) -> None:
    """Capture debug records with bound context copied onto each record."""
    caplog.set_level(logging.DEBUG, logger="tests.public_api")
    caplog.handler.addFilter(ContextFilter())


def _public_method_names(*, file_path: Path, class_name: str) -> set[str]:
    """Return non-private method names declared directly on one class."""
    class_node = _class_node(file_path=file_path, class_name=class_name)
    names: set[str] = set()
    for node in class_node.body:
        if not isinstance(node, ast.FunctionDef):
            continue
        if node.name.startswith("_"):
            continue
        if _has_decorator(node, "property"):
            continue
        names.add(node.name)
    return names


def _decorated_public_api_methods(*, file_path: Path, class_name: str) -> set[str]:
    """Return method names decorated with ``@public_api_instrumented``."""
    class_node = _class_node(file_path=file_path, class_name=class_name)
    names: set[str] = set()
    for node in class_node.body:
        if not isinstance(node, ast.FunctionDef):
            continue
        if node.name.startswith("_"):
            continue
        if _has_decorator(node, "public_api_instrumented"):
            names.add(node.name)
    return names


def _class_node(*, file_path: Path, class_name: str) -> ast.ClassDef:
    """Load and return one named class node from a Python module."""
    module = ast.parse(file_path.read_text(encoding="utf-8"))
    for node in module.body:
        if isinstance(node, ast.ClassDef) and node.name == class_name:
            return node
    raise AssertionError(f"Class not found: {class_name} in {file_path}")


def _has_decorator(node: ast.FunctionDef, name: str) -> bool:
    """Return whether method decorators include ``@name`` or ``@name(...)``."""
    for decorator in node.decorator_list:
        if isinstance(decorator, ast.Name) and decorator.id == name:
            return True
        if (
            isinstance(decorator, ast.Call)
            and isinstance(decorator.func, ast.Name)
            and decorator.func.id == name
        ):
            return True
    return False
