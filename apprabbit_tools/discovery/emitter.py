"""
================================================================================
Discovery Artifact Emitter
================================================================================

Turns discovery records into two artifacts:

    - an audit JSON file (full record: every logical name, its candidates,
      the matched one and the probe metadata)
    - a generated Python stub:
        * UI: a page object whose accessors resolve the matched selector
          first and fall back to the remaining candidates
        * API: a client whose methods bind method / path / auth requirement

Rendering is a pure function of the record, so the same record always
produces byte-identical output and stubs can be rebuilt from the audit JSON
without a live target (`regenerate`).

Names that were not found still get an accessor or method; it raises
CandidateExhaustedError when called, never while emitting.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import keyword
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Union

from loguru import logger

from apprabbit_tools.resolution import EmissionError

from .catalogs import ROLE_BUTTON, ROLE_INPUT, ROLE_LINK
from .models import ApiDiscoveryRecord, DiscoveryEntry, DiscoveryRecord, EndpointEntry


AnyRecord = Union[DiscoveryRecord, ApiDiscoveryRecord]

API_STUB_NAME = "api_client"
API_CLIENT_CLASS = "AppRabbitApiClient"

# Header of every generated module
GENERATED_BANNER = (
    "# Auto-generated by run_discovery.py. Manual edits are overwritten on the\n"
    "# next discovery run; regenerate with `run_discovery.py --regenerate`.\n"
)

_PATH_PARAM = re.compile(r":([A-Za-z_]\w*)")
_API_VERSION_PREFIX = re.compile(r"/api/v\d+/")

# Lowercase names of class attributes every generated page object defines
_PAGE_RESERVED = ("url_path",)


@dataclass(frozen=True)
class EmittedArtifacts:
    """Paths and contents written for one record."""
    audit_path: Path
    stub_path: Path
    audit_text: str
    stub_text: str


# =============================================================================
# Naming helpers
# =============================================================================

def to_snake_case(name: str) -> str:
    """'LoginPage' -> 'login_page', 'Email Input' -> 'email_input'."""
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name.strip())
    name = re.sub(r"[^0-9A-Za-z]+", "_", name)
    return name.strip("_").lower()


def to_identifier(name: str) -> str:
    ident = to_snake_case(name) or "element"
    if ident[0].isdigit():
        ident = f"_{ident}"
    if keyword.iskeyword(ident):
        ident = f"{ident}_"
    return ident


def to_class_name(name: str) -> str:
    """'LoginPage' -> 'LoginPage', 'login page' -> 'LoginPage'."""
    return "".join(part.capitalize() for part in to_snake_case(name).split("_")) or "GeneratedPage"


def path_to_method_name(path: str) -> str:
    """
    Derive a method name from a path template.

    '/api/v1/users' -> 'users', '/apps/:id' -> 'apps_id'
    """
    name = _API_VERSION_PREFIX.sub("", path)
    name = re.sub(r"[/:\-]", "_", name)
    name = re.sub(r"_+", "_", name).strip("_").lower()
    return to_identifier(name or "root")


def path_params(path: str) -> List[str]:
    seen: Dict[str, None] = {}
    for match in _PATH_PARAM.finditer(path):
        seen.setdefault(match.group(1), None)
    return list(seen)


def unique_names(bases: Iterable[str], reserved: Iterable[str] = ()) -> List[str]:
    """Suffix repeats with _2, _3 ... so every generated name is distinct."""
    taken = set(reserved)
    names: List[str] = []
    for base in bases:
        name, count = base, 1
        while name in taken:
            count += 1
            name = f"{base}_{count}"
        taken.add(name)
        names.append(name)
    return names


def _docstring_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"""', "'''")


# =============================================================================
# Rendering
# =============================================================================

def render_audit(record: AnyRecord) -> str:
    """Serialize a record as the audit JSON (stable key order)."""
    return json.dumps(record.to_dict(), indent=2, ensure_ascii=False, sort_keys=True) + "\n"


def render_stub(record: AnyRecord) -> str:
    """Render the generated source for a record."""
    if isinstance(record, ApiDiscoveryRecord):
        return _render_api_stub(record)
    return _render_page_stub(record)


def _render_page_stub(record: DiscoveryRecord) -> str:
    class_name = to_class_name(record.page_name)
    lines: List[str] = [
        GENERATED_BANNER,
        '"""',
        f"Generated page object: {record.page_name} ({record.url}).",
        "",
        f"Elements found: {len(record.found)}/{len(record.entries)}.",
        '"""',
        "",
        "from __future__ import annotations",
        "",
        "from playwright.async_api import Locator",
        "",
        "from apprabbit_tools.resolution import CandidateExhaustedError, CandidateList",
        "from testsuites.ui_testing.framework.page_base import PageBase",
        "",
        "",
        f"class {class_name}(PageBase):",
        f'    """Page object for {record.url} with discovered selectors."""',
        "",
        f"    URL_PATH = {record.url!r}",
    ]

    idents = unique_names(
        (to_identifier(entry.logical_name) for entry in record.entries),
        reserved=_PAGE_RESERVED,
    )
    for ident, entry in zip(idents, record.entries):
        lines.extend(_render_candidate_constant(ident, entry))

    for ident, entry in zip(idents, record.entries):
        lines.extend(_render_accessor(ident, entry))
        lines.extend(_render_actions(ident, entry))

    lines.extend(["", f"__all__ = [{class_name!r}]", ""])
    return "\n".join(lines)


def _render_candidate_constant(ident: str, entry: DiscoveryEntry) -> List[str]:
    const = ident.upper()
    if entry.found:
        ordered = (entry.primary,) + entry.fallbacks
        meta = entry.metadata
        comment = f"    # primary: <{meta.get('tag', '?')}> visible={meta.get('visible')}"
    else:
        ordered = entry.candidate_list.candidates
        comment = "    # not found during discovery"
    lines = ["", comment, f"    {const} = CandidateList(", f"        {entry.logical_name!r},", "        ("]
    lines.extend(f"            {candidate!r}," for candidate in ordered)
    lines.extend(["        ),", "    )"])
    return lines


def _render_accessor(ident: str, entry: DiscoveryEntry) -> List[str]:
    const = ident.upper()
    lines = [
        "",
        f"    async def locate_{ident}(self, timeout: int = 5000) -> Locator:",
    ]
    if entry.found:
        lines.append(f"        return await self.smart.locate(self.{const}, timeout=timeout)")
    else:
        lines.append(
            f"        raise CandidateExhaustedError({entry.logical_name!r}, self.{const}.candidates)"
        )
    return lines


def _render_actions(ident: str, entry: DiscoveryEntry) -> List[str]:
    if entry.role == ROLE_INPUT:
        return [
            "",
            f"    async def fill_{ident}(self, value: str, timeout: int = 5000) -> None:",
            f"        locator = await self.locate_{ident}(timeout)",
            "        await locator.fill(value)",
            "",
            f"    async def read_{ident}(self, timeout: int = 5000) -> str:",
            f"        locator = await self.locate_{ident}(timeout)",
            "        return await locator.input_value()",
        ]
    if entry.role in (ROLE_BUTTON, ROLE_LINK):
        return [
            "",
            f"    async def click_{ident}(self, timeout: int = 5000) -> None:",
            f"        locator = await self.locate_{ident}(timeout)",
            "        await locator.click()",
        ]
    return [
        "",
        f"    async def text_of_{ident}(self, timeout: int = 5000) -> str:",
        f"        locator = await self.locate_{ident}(timeout)",
        '        return (await locator.text_content() or "").strip()',
    ]


def _api_method_names(endpoints: Iterable[EndpointEntry]) -> List[str]:
    return unique_names(f"{e.method.lower()}_{path_to_method_name(e.path)}" for e in endpoints)


def _render_api_stub(record: ApiDiscoveryRecord) -> str:
    lines: List[str] = [
        GENERATED_BANNER,
        '"""',
        f"Generated API client for {record.base_url or 'the configured API'}.",
        "",
        f"Endpoints responding: {len(record.existing)}/{len(record.endpoints)}.",
        '"""',
        "",
        "from __future__ import annotations",
        "",
        "from typing import Any, Dict, Optional",
        "",
        "import httpx",
        "",
        "from apprabbit_tools.resolution import CandidateExhaustedError",
        "from testsuites.api_testing.framework.http_client import HttpClient",
        "",
        "",
        f"class {API_CLIENT_CLASS}:",
        f'    """Thin wrappers over the endpoints found on {record.base_url or "the API"}."""',
        "",
        f"    BASE_URL = {record.base_url!r}",
        "",
        "    def __init__(self, http_client: HttpClient) -> None:",
        "        self.http = http_client",
    ]

    for name, endpoint in zip(_api_method_names(record.endpoints), record.endpoints):
        lines.extend(_render_api_method(name, endpoint))

    lines.extend(["", f"__all__ = [{API_CLIENT_CLASS!r}]", ""])
    return "\n".join(lines)


def _render_api_method(name: str, endpoint: EndpointEntry) -> List[str]:
    params = path_params(endpoint.path)
    signature = ["self"] + [f"{to_identifier(p)}: str" for p in params]
    has_body = endpoint.method != "GET"
    if has_body:
        signature.append("data: Optional[Dict[str, Any]] = None")

    if params:
        url_expr = "f" + repr(_PATH_PARAM.sub(lambda m: "{" + to_identifier(m.group(1)) + "}", endpoint.path))
    else:
        url_expr = repr(endpoint.path)

    status = endpoint.status if endpoint.status is not None else "no response"
    lines = [
        "",
        f"    def {name}({', '.join(signature)}) -> httpx.Response:",
        f'        """{_docstring_text(endpoint.description)} '
        f'({endpoint.method} {endpoint.path}, discovered status: {status})."""',
    ]
    if not endpoint.exists:
        lines.append(
            f"        raise CandidateExhaustedError({endpoint.logical_name!r}, ({endpoint.path!r},))"
        )
        return lines

    call = f"        return self.http.request({endpoint.method!r}, {url_expr}, auth={endpoint.auth_required!r}"
    if has_body:
        call += ", json=data"
    lines.append(call + ")")
    return lines


# =============================================================================
# Emitter
# =============================================================================

def stub_name(record: AnyRecord) -> str:
    if isinstance(record, ApiDiscoveryRecord):
        return API_STUB_NAME
    return to_snake_case(record.page_name)


def load_records(audit_path: Union[str, Path]) -> List[AnyRecord]:
    """
    Read an audit JSON file back into records.

    Accepts a per-stub audit (one page or the API record) and the per-run
    UI summary (`{"pages": [...]}`).

    Raises:
        EmissionError: Unreadable file or unrecognized record shape
    """
    try:
        data = json.loads(Path(audit_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise EmissionError(f"Cannot read audit record {audit_path}: {e}") from e

    try:
        if isinstance(data, dict) and "pages" in data:
            if not isinstance(data["pages"], list):
                raise TypeError("\"pages\" is not a list")
            return [DiscoveryRecord.from_dict(page) for page in data["pages"]]
        if isinstance(data, dict) and "endpoints" in data:
            return [ApiDiscoveryRecord.from_dict(data)]
        return [DiscoveryRecord.from_dict(data)]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise EmissionError(f"Unrecognized audit record {audit_path}: {e!r}") from e


def load_record(audit_path: Union[str, Path]) -> AnyRecord:
    """Read an audit file that holds exactly one record."""
    records = load_records(audit_path)
    if len(records) != 1:
        raise EmissionError(f"{audit_path} holds {len(records)} records, expected one")
    return records[0]


class ArtifactEmitter:
    """
    Write audit records and generated stubs under one output directory.

    Layout:
        <output_dir>/__init__.py
        <output_dir>/<stub>.py
        <output_dir>/audit/<stub>.json

    Files are overwritten on every run.
    """

    def __init__(self, output_dir: Union[str, Path]):
        self.output_dir = Path(output_dir)

    @property
    def audit_dir(self) -> Path:
        return self.output_dir / "audit"

    def emit(self, record: AnyRecord) -> EmittedArtifacts:
        """
        Write both artifacts for `record`.

        Raises:
            EmissionError: When the files cannot be written
        """
        name = stub_name(record)
        audit_text = render_audit(record)
        stub_text = render_stub(record)

        audit_path = self.audit_dir / f"{name}.json"
        stub_path = self.output_dir / f"{name}.py"

        self._write(audit_path, audit_text)
        self._write(stub_path, stub_text)
        self._ensure_package()

        if record.is_partial:
            logger.warning(f"📝 {name}: partial discovery, unmatched names raise at call time")
        logger.info(f"📝 Generated {stub_path} (audit: {audit_path})")
        return EmittedArtifacts(audit_path, stub_path, audit_text, stub_text)

    def emit_all(self, records: Iterable[AnyRecord]) -> List[EmittedArtifacts]:
        return [self.emit(record) for record in records]

    def write_summary(self, records: Iterable[DiscoveryRecord], filename: str = "discovered-selectors.json") -> Path:
        """Write the combined per-run UI audit (`discoveredAt` + every page)."""
        records = list(records)
        discovered_at = max((r.discovered_at for r in records), default="")
        payload = {
            "discoveredAt": discovered_at,
            "pages": [r.to_dict() for r in records],
        }
        path = self.output_dir / filename
        self._write(path, json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True) + "\n")
        logger.info(f"📊 Saved {len(records)} page records to {path}")
        return path

    def write_endpoint_summary(
        self,
        record: ApiDiscoveryRecord,
        filename: str = "discovered-endpoints.json",
    ) -> Path:
        """Write the per-run API audit next to the UI summary."""
        path = self.output_dir / filename
        self._write(path, render_audit(record))
        logger.info(f"📊 Saved {len(record.endpoints)} endpoints to {path}")
        return path

    def regenerate(self, audit_path: Union[str, Path]) -> List[Path]:
        """Rebuild the stubs for every record in an audit file without probing."""
        stub_paths = []
        for record in load_records(audit_path):
            stub_path = self.output_dir / f"{stub_name(record)}.py"
            self._write(stub_path, render_stub(record))
            logger.info(f"📝 Regenerated {stub_path} from {audit_path}")
            stub_paths.append(stub_path)
        self._ensure_package()
        return stub_paths

    def _ensure_package(self) -> None:
        init_file = self.output_dir / "__init__.py"
        if not init_file.exists():
            self._write(init_file, '"""Generated page objects and API clients."""\n')

    def _write(self, path: Path, text: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise EmissionError(f"Cannot write {path}: {e}") from e


__all__ = [
    "EmittedArtifacts",
    "ArtifactEmitter",
    "load_record",
    "load_records",
    "path_to_method_name",
    "render_audit",
    "render_stub",
    "to_snake_case",
]
