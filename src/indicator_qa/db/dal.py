import copy
import json
import logging
import os
import re
from typing import Dict, List, Optional, Protocol

from ..processors.issue_lifecycle import IssueStatus
from ..processors.qa import QAResults

logger = logging.getLogger(__name__)

RESULTS_FILE = "qa_results.json"
STATUSES_FILE = "issue_statuses.json"

_PROJECT_ID_PATTERN = re.compile(r"^[\w.\-]+$", re.UNICODE)


class QARepository(Protocol):
    """Persistence for QA results and issue statuses, one slot per project."""

    def load_results(self, project_id: str) -> Optional[QAResults]:
        ...

    def save_results(self, project_id: str, results: QAResults) -> None:
        ...

    def load_statuses(self, project_id: str) -> List[IssueStatus]:
        ...

    def save_statuses(self, project_id: str, statuses: List[IssueStatus]) -> None:
        ...


class InMemoryQARepository:
    """Dict-backed repository. Stores and returns copies."""

    def __init__(self):
        self._results: Dict[str, QAResults] = {}
        self._statuses: Dict[str, List[IssueStatus]] = {}

    def load_results(self, project_id: str) -> Optional[QAResults]:
        results = self._results.get(project_id)
        return copy.deepcopy(results) if results is not None else None

    def save_results(self, project_id: str, results: QAResults) -> None:
        self._results[project_id] = copy.deepcopy(results)

    def load_statuses(self, project_id: str) -> List[IssueStatus]:
        return copy.deepcopy(self._statuses.get(project_id, []))

    def save_statuses(self, project_id: str, statuses: List[IssueStatus]) -> None:
        self._statuses[project_id] = copy.deepcopy(list(statuses))


class JsonFileQARepository:
    """
    Repository storing one directory per project under base_dir:

        <base_dir>/<project_id>/qa_results.json
        <base_dir>/<project_id>/issue_statuses.json
    """

    def __init__(self, base_dir: str):
        self.base_dir = base_dir

    def _project_dir(self, project_id: str) -> str:
        if not project_id or not _PROJECT_ID_PATTERN.match(project_id) or project_id in (".", ".."):
            raise ValueError(f"Invalid project id: {project_id!r}")
        return os.path.join(self.base_dir, project_id)

    def _read_json(self, project_id: str, filename: str):
        path = os.path.join(self._project_dir(project_id), filename)
        if not os.path.exists(path):
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def _write_json(self, project_id: str, filename: str, payload) -> None:
        project_dir = self._project_dir(project_id)
        os.makedirs(project_dir, exist_ok=True)
        path = os.path.join(project_dir, filename)
        tmp_path = path + ".tmp"
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, ensure_ascii=False, indent=2, default=str)
        os.replace(tmp_path, path)
        logger.debug(f"Saved {path}")

    def load_results(self, project_id: str) -> Optional[QAResults]:
        payload = self._read_json(project_id, RESULTS_FILE)
        if payload is None:
            return None
        return QAResults.from_dict(payload)

    def save_results(self, project_id: str, results: QAResults) -> None:
        self._write_json(project_id, RESULTS_FILE, results.to_dict())
        logger.info(f"Saved QA results for project {project_id}: {len(results.issues)} issues")

    def load_statuses(self, project_id: str) -> List[IssueStatus]:
        payload = self._read_json(project_id, STATUSES_FILE)
        return [IssueStatus.from_dict(item) for item in payload or []]

    def save_statuses(self, project_id: str, statuses: List[IssueStatus]) -> None:
        self._write_json(project_id, STATUSES_FILE, [s.to_dict() for s in statuses])
