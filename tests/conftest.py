"""
tests/conftest.py

Configuration for pytest.
"""

import shutil
from collections.abc import Callable
from pathlib import Path

import pytest

from bifrost2postman.schema_generation.compilation import Compilation
from bifrost2postman.schema_generation.models import CompilationUnitSyntax
from bifrost2postman.schema_generation.source_parser import parse_source


@pytest.fixture(scope="session")
def tests_root() -> Path:
    """
    Root directory for tests.
    Returns:
        Path to the tests directory.
    """
    return Path(__file__).parent.resolve()


@pytest.fixture(scope="session")
def data_dir(tests_root: Path) -> Path:
    """
    Directory containing test data files.
    Returns:
        Path to tests/data.
    """
    return tests_root / "data"


@pytest.fixture(scope="session")
def input_data_dir(data_dir: Path) -> Path:
    """
    Directory containing input test data files.
    Returns:
        Path to tests/data/input.
    """
    return data_dir / "input"


@pytest.fixture
def client_root(input_data_dir: Path, tmp_path: Path) -> Path:
    """
    A copy of the sample Hudl.Ordering.Client project in a temporary directory.
    Returns:
        Path to the copied client root.
    """
    destination = tmp_path / "Hudl.Ordering.Client"
    shutil.copytree(input_data_dir / "Hudl.Ordering.Client", destination)
    return destination


@pytest.fixture
def compile_sources() -> Callable[..., tuple[Compilation, list[CompilationUnitSyntax]]]:
    """
    Factory fixture that parses C# source strings into a Compilation.

    Usage:
        compilation, units = compile_sources("namespace A { public class B {} }")
        compilation, units = compile_sources(models_source, services_source)
    """
    def factory(*sources: str) -> tuple[Compilation, list[CompilationUnitSyntax]]:
        units = [
            parse_source(source, file_path=f"Source{index}.cs")
            for index, source in enumerate(sources)
        ]
        return Compilation(units), units
    return factory
