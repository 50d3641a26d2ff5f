from typing import Any, Literal, TypedDict

Visibility = Literal["public", "private", "dunder"]


class DiagnosticRecord(TypedDict):
    kind: Literal["unclosed", "skipped"]
    context: str
    line: int
    message: str


class MethodRecord(TypedDict):
    name: str
    qname: str
    visibility: Visibility
    lines: list[int]
    documented: bool
    docstring: str | None


class FunctionRecord(TypedDict):
    name: str
    qname: str
    visibility: Visibility
    exported: bool | None
    lines: list[int]
    documented: bool
    docstring: str | None


class ClassRecord(TypedDict):
    name: str
    qname: str
    visibility: Visibility
    exported: bool | None
    lines: list[int]
    documented: bool
    docstring: str | None
    methods: list[MethodRecord]


class ModuleRecord(TypedDict):
    path: str
    qname: str
    exports: list[str] | None
    classes: list[ClassRecord]
    functions: list[FunctionRecord]
    diagnostics: list[DiagnosticRecord]


class PackageRecord(TypedDict):
    path: str
    qname: str
    is_package: Literal[True]
    modules: list[ModuleRecord]


class InventoryStats(TypedDict):
    files_scanned: int
    files_excluded: int
    files_parsed_ok: int
    files_parse_errors: int
    packages: int
    modules: int
    classes: int
    methods: int
    functions: int
    documented: int
    undocumented: int
    coverage_pct: float
    diagnostics: int


class Metadata(TypedDict):
    schema_version: str
    generated_at: str
    package: dict[str, str | None]
    root: str
    config_effective: dict[str, Any]


class InventoryReport(TypedDict):
    meta: Metadata
    stats: InventoryStats
    packages: list[PackageRecord]
