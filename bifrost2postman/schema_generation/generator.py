"""
bifrost2postman/schema_generation/generator.py

Orchestrator for the schema generation pipeline.

Pipeline:
1. Collect .cs files under the corpus root (skipping bin/obj)
2. Parse every file; unparseable files become diagnostics
3. Build one Compilation over all parsed units
4. Extract route-annotated endpoints from the units under the Services folder
5. Synthesize a sample request body for each endpoint's parameter type
6. Group the resulting RequestSchemas by enclosing type

The pipeline is deterministic: files are processed in sorted order and
samples are pure functions of the declared types.
"""

from pathlib import Path

from bifrost2postman.config import Config
from bifrost2postman.schema_generation.compilation import Compilation
from bifrost2postman.schema_generation.extractor import EndpointExtractor
from bifrost2postman.schema_generation.models import (
    CompilationUnitSyntax,
    GenerationResult,
    RequestSchema,
    SourceDiagnostic,
)
from bifrost2postman.schema_generation.sampler import SampleSynthesizer, dump_sample
from bifrost2postman.schema_generation.source_parser import parse_file
from bifrost2postman.utils.exceptions import CorpusError, SourceParseError
from bifrost2postman.utils.logger import get_logger

logger = get_logger(name=__name__)


def find_source_files(root: Path) -> list[Path]:
    """All .cs files below `root` in sorted order, ignoring build output folders."""
    files = []
    for path in root.rglob("*.cs"):
        relative_parts = path.relative_to(root).parts[:-1]
        if any(part in Config.SKIPPED_FOLDER_NAMES for part in relative_parts):
            continue
        if path.is_file():
            files.append(path)
    return sorted(files)


class SchemaGenerator:
    """
    Generates request schemas for every endpoint of a client's Services folder.

    Usage:
        generator = SchemaGenerator(Path("Hudl.Ticketing.Client/Services"))
        result = generator.generate()
        for group, requests in result.requests_by_group.items():
            ...
    """

    def __init__(self, services_root: Path, corpus_root: Path | None = None) -> None:
        """
        Initialize the generator.

        Args:
            services_root: Folder holding the annotated service interfaces.
            corpus_root: Folder whose sources are used to resolve types.
                Defaults to the parent of `services_root`, so that models declared
                next to the Services folder are found.
        """
        self._services_root = Path(services_root)
        self._corpus_root = Path(corpus_root) if corpus_root is not None else self._services_root.parent

    def generate(self) -> GenerationResult:
        """
        Run the pipeline.
        Returns:
            GenerationResult: Request schemas grouped by enclosing type, plus diagnostics.
        Raises:
            FileNotFoundError: If the services folder does not exist.
            CorpusError: If the services folder holds no .cs files.
        """
        if not self._services_root.is_dir():
            raise FileNotFoundError(f"Services folder not found: {self._services_root}")

        service_files = find_source_files(self._services_root)
        if not service_files:
            raise CorpusError(f"No .cs files found under {self._services_root}")

        corpus_files = find_source_files(self._corpus_root)
        # services may live outside the corpus root when one is given explicitly
        corpus_files = sorted(set(corpus_files) | set(service_files))
        logger.info("Parsing %d source files under %s", len(corpus_files), self._corpus_root)

        units, diagnostics = self._parse_all(corpus_files)
        compilation = Compilation(units)

        service_paths = {str(path) for path in service_files}
        service_units = [unit for unit in units if unit.file_path in service_paths]
        extraction = EndpointExtractor(compilation).extract(service_units)
        diagnostics.extend(extraction.diagnostics)
        logger.info("Extracted %d endpoints", len(extraction.endpoints))

        synthesizer = SampleSynthesizer(compilation)
        requests_by_group: dict[str, list[RequestSchema]] = {}
        for endpoint in extraction.endpoints:
            try:
                sample = synthesizer.synthesize(endpoint.parameter_type)
                sample_json = dump_sample(sample)
            except Exception as e:
                logger.error(
                    "Failed to build sample for %s.%s: %s: %s",
                    endpoint.group_key, endpoint.method_name, type(e).__name__, e,
                )
                sample = None
                sample_json = "{}"
            requests_by_group.setdefault(endpoint.group_key, []).append(RequestSchema(
                group_key=endpoint.group_key,
                method_name=endpoint.method_name,
                endpoint=endpoint.route,
                sample=sample,
                sample_json=sample_json,
            ))

        return GenerationResult(
            requests_by_group=requests_by_group,
            diagnostics=diagnostics,
            total_files_parsed=len(units),
            total_endpoints=len(extraction.endpoints),
        )

    def _parse_all(self, paths: list[Path]) -> tuple[list[CompilationUnitSyntax], list[SourceDiagnostic]]:
        units: list[CompilationUnitSyntax] = []
        diagnostics: list[SourceDiagnostic] = []
        for path in paths:
            try:
                units.append(parse_file(path))
            except SourceParseError as e:
                logger.warning("Skipping %s: %s", path, e)
                diagnostics.append(SourceDiagnostic(
                    file_path=str(path),
                    message=str(e),
                    error_type=type(e).__name__,
                    line=e.line,
                ))
            except OSError as e:
                logger.warning("Could not read %s: %s", path, e)
                diagnostics.append(SourceDiagnostic(
                    file_path=str(path),
                    message=str(e),
                    error_type=type(e).__name__,
                ))
        return units, diagnostics
