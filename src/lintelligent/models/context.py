"""Repository context models."""

from dataclasses import dataclass, field
from typing import Any

# Keys of the config files bundled with a project context, in display order.
CONFIG_LABELS = {
    "packageJson": "package.json dependencies",
    "tsconfigJson": "tsconfig.json",
    "eslintrc": ".eslintrc",
}


@dataclass
class RepoContextRequest:
    """Identifies one file in a GitHub repository plus the token to read it."""

    owner: str
    repo: str
    ref: str
    file_path: str
    access_token: str

    @property
    def project_id(self) -> str:
        return f"{self.owner}/{self.repo}"

    def to_tool_arguments(self) -> dict[str, str]:
        """Arguments for the get_project_context tool."""
        return {
            "owner": self.owner,
            "repo": self.repo,
            "ref": self.ref,
            "file_path": self.file_path,
            "access_token": self.access_token,
        }

    def describe(self) -> dict[str, Any]:
        """Diagnostic view of the request without the token."""
        return {
            "owner": self.owner,
            "repo": self.repo,
            "ref": self.ref,
            "filePath": self.file_path or "UNDEFINED",
            "hasAccessToken": bool(self.access_token),
        }


@dataclass
class RelatedFile:
    """A file pulled into the context, with the reason it was included."""

    path: str
    content: str
    reason: str


@dataclass
class ProjectContext:
    """Bounded bundle of a target file, its related files and config."""

    target_path: str
    target_content: str
    related_files: list[RelatedFile] = field(default_factory=list)
    configs: dict[str, str] = field(default_factory=dict)
    project_summary: str = ""
    unresolved_imports: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "targetFile": {"path": self.target_path, "content": self.target_content},
            "relatedFiles": [
                {"path": f.path, "content": f.content, "reason": f.reason}
                for f in self.related_files
            ],
            "configs": dict(self.configs),
            "projectSummary": self.project_summary,
            "unresolvedImports": list(self.unresolved_imports),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProjectContext":
        target = data.get("targetFile") or {}
        return cls(
            target_path=target.get("path", ""),
            target_content=target.get("content", ""),
            related_files=[
                RelatedFile(path=f["path"], content=f.get("content", ""), reason=f.get("reason", ""))
                for f in data.get("relatedFiles", [])
            ],
            configs={k: v for k, v in (data.get("configs") or {}).items() if v},
            project_summary=data.get("projectSummary", ""),
            unresolved_imports=list(data.get("unresolvedImports", [])),
        )

    def to_prompt_context(self, request: RepoContextRequest) -> str:
        """Format context as a compact pipe-joined hint for the review prompt."""
        parts = [
            f"Project: {request.project_id} ({request.ref})",
            f"Reviewing: {request.file_path}",
        ]
        for key, label in CONFIG_LABELS.items():
            if self.configs.get(key):
                parts.append(f"Config: {label}")
        if self.related_files:
            parts.append(f"Related files: {', '.join(f.path for f in self.related_files)}")
        return " | ".join(parts)
