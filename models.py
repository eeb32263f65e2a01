# models.py
#
# Purpose:
# The data passed between the GitHub client, the analyzers, the scorer and
# the persistence layer.
#
# - RepoSnapshot is built once per analysis and is frozen afterwards, so every
#   analyzer sees the same data and none of them can change it.
# - Each analyzer returns an AnalyzerResult whose "details" is a dataclass
#   specific to that analyzer. to_dict() turns it into the plain mapping that
#   db_utils stores and the UI renders.

from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Tuple


# ----------------------------
# Snapshot
# ----------------------------
@dataclass(frozen=True)
class FileEntry:
    path: str
    type: str = "blob"
    size: int = 0

    @classmethod
    def from_api(cls, item):
        """Build from one entry of the git/trees API response."""
        return cls(
            path=item.get("path", ""),
            type=item.get("type", "blob"),
            size=int(item.get("size") or 0),
        )


@dataclass(frozen=True)
class Readme:
    content: str
    size: int = 0
    name: str = "README.md"
    path: str = "README.md"


@dataclass(frozen=True)
class Commit:
    message: str
    author: str = ""
    date: str = ""
    sha: str = ""


@dataclass(frozen=True)
class Branch:
    name: str
    protected: bool = False


@dataclass(frozen=True)
class PullRequestStats:
    total: int = 0
    open: int = 0
    closed: int = 0
    merged: int = 0


@dataclass(frozen=True)
class Contributor:
    username: str
    contributions: int = 0


@dataclass(frozen=True)
class RepoInfo:
    name: str
    full_name: str
    owner: str
    description: Optional[str] = None
    language: Optional[str] = None
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    size: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    default_branch: str = "main"
    is_private: bool = False
    homepage: Optional[str] = None
    license: Optional[str] = None

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        known = {k: v for k, v in (data or {}).items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass(frozen=True)
class RepoSnapshot:
    files: Tuple[FileEntry, ...] = ()
    readme: Optional[Readme] = None
    commits: Tuple[Commit, ...] = ()
    branches: Tuple[Branch, ...] = ()
    pull_requests: Optional[PullRequestStats] = None
    # read-only view; fetch_snapshot wraps the fetched map
    languages: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    contributors: Tuple[Contributor, ...] = ()

    @property
    def paths(self):
        return [f.path for f in self.files]


# ----------------------------
# Analyzer details
# ----------------------------
@dataclass(frozen=True)
class CodeQualityDetails:
    complexity: float = 0
    file_size: float = 0
    naming: float = 0
    duplication: float = 0
    total_code_files: int = 0


@dataclass(frozen=True)
class StructureDetails:
    folder_organization: int = 0
    config_files: int = 0
    separation_of_concerns: int = 0


@dataclass(frozen=True)
class DocumentationDetails:
    readme: int = 0
    code_comments: int = 0
    additional_docs: int = 0
    readme_length: int = 0
    readme_sections: Tuple[str, ...] = ()
    has_license: bool = False
    has_contributing: bool = False


@dataclass(frozen=True)
class TestingDetails:
    test_presence: int = 0
    test_coverage: int = 0
    test_organization: int = 0
    test_framework: int = 0
    total_test_files: int = 0
    test_to_code_ratio: float = 0.0
    testing_frameworks: Tuple[str, ...] = ()


@dataclass(frozen=True)
class GitPracticesDetails:
    commit_quality: int = 0
    branch_strategy: int = 0
    pull_requests: int = 0


@dataclass(frozen=True)
class SecurityIssue:
    type: str
    severity: str


@dataclass(frozen=True)
class SecurityDetails:
    secrets: int = 0
    gitignore: int = 0
    dependencies: int = 0
    security_issues: Tuple[SecurityIssue, ...] = ()


@dataclass(frozen=True)
class CICDDetails:
    has_cicd: bool = False
    platforms: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DependenciesDetails:
    package_managers: Tuple[str, ...] = ()
    frameworks: Tuple[str, ...] = ()
    vulnerable_dependencies: int = 0


@dataclass(frozen=True)
class ContainerizationDetails:
    has_dockerfile: bool = False
    has_docker_compose: bool = False


# ----------------------------
# Results
# ----------------------------
@dataclass(frozen=True)
class AnalyzerResult:
    key: str
    score: int
    max_score: int
    details: Any = None
    error: Optional[str] = None

    def details_dict(self):
        """
        Plain dict version of details (tuples become lists).
        A placeholder or an empty-input result has no details and gives {}.
        """
        if self.details is None:
            return {}
        return _listify(asdict(self.details))

    def to_dict(self):
        out = {"score": self.score, "max_score": self.max_score, "details": self.details_dict()}
        if self.error:
            out["error"] = self.error
        return out


@dataclass(frozen=True)
class CompositeScore:
    total: int
    rating: str
    badge: str


@dataclass(frozen=True)
class RoadmapItem:
    priority: str
    title: str
    description: str
    estimated_time: str

    def to_dict(self):
        return {
            "priority": self.priority,
            "title": self.title,
            "description": self.description,
            "estimatedTime": self.estimated_time,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            priority=data.get("priority", "medium"),
            title=data.get("title", ""),
            description=data.get("description", ""),
            estimated_time=data.get("estimatedTime", data.get("estimated_time", "")),
        )


def _listify(value):
    """Recursively turn tuples into lists so the result is JSON friendly."""
    if isinstance(value, dict):
        return {k: _listify(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_listify(v) for v in value]
    return value


def roadmap_to_dicts(items: List[RoadmapItem]):
    return [item.to_dict() for item in items]
