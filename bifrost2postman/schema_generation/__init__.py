"""
bifrost2postman/schema_generation/__init__.py

Schema generation module - static analysis of C# service clients to find
route-annotated endpoints and synthesize sample request bodies for them.
"""

from bifrost2postman.schema_generation.compilation import Compilation
from bifrost2postman.schema_generation.extractor import EndpointExtractor
from bifrost2postman.schema_generation.generator import SchemaGenerator
from bifrost2postman.schema_generation.models import (
    EndpointRecord,
    ExtractionResult,
    GenerationResult,
    RequestSchema,
    SourceDiagnostic,
)
from bifrost2postman.schema_generation.sampler import SampleSynthesizer
from bifrost2postman.schema_generation.source_parser import parse_file, parse_source
